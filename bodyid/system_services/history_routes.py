# bodyid/system_services/history_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.appconfig import settings
from bodyid.database.connection import get_db
from bodyid.helpers.uploads import read_upload
from bodyid.integrations.storage_client import CloudinaryStorage, get_storage_client
from bodyid.system_models.medical_history_model.medical_history_schemas import MedicalHistoryResponse
from bodyid.system_services.medical_history_services import get_history, list_histories, upload_history
from bodyid.users.auth_dependencies import get_current_patient
from bodyid.users.user_models.user_model import User

router = APIRouter()


@router.post("", response_model=MedicalHistoryResponse, status_code=status.HTTP_201_CREATED)
async def upload_history_endpoint(
    file: UploadFile = File(...),
    description: Optional[str] = Form(None),
    current_user: User = Depends(get_current_patient),
    storage: Optional[CloudinaryStorage] = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    data = await read_upload(file, settings.MAX_FILE_BYTES)
    return await upload_history(db, storage, current_user, data, description)


@router.get("", response_model=List[MedicalHistoryResponse])
async def list_history_endpoint(
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    return await list_histories(db, current_user)


@router.get("/{history_id}", response_model=MedicalHistoryResponse)
async def get_history_endpoint(
    history_id: int,
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    return await get_history(db, history_id, current_user)
