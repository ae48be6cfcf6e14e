# bodyid/system_services/record_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.appconfig import settings
from bodyid.database.connection import get_db
from bodyid.helpers.uploads import read_upload
from bodyid.integrations.storage_client import CloudinaryStorage, get_storage_client
from bodyid.system_models.record_model.record_schemas import (
    RecordResponse,
    RecordShareRequest,
    SharedDoctor,
    SharedWithResponse,
)
from bodyid.system_services.record_services import (
    delete_record,
    get_record,
    list_own_records,
    list_shared_records,
    share_record,
    unshare_record,
    upload_record,
)
from bodyid.users.auth_dependencies import get_current_doctor, get_current_patient, get_current_user
from bodyid.users.user_models.user_model import User

router = APIRouter()


def _share_list(message: str, record) -> SharedWithResponse:
    return SharedWithResponse(
        message=message,
        shared_with=[SharedDoctor.model_validate(d) for d in record.shared_with],
    )


@router.post("", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def upload_record_endpoint(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma-separated tags"),
    current_user: User = Depends(get_current_patient),
    storage: Optional[CloudinaryStorage] = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    data = await read_upload(file, settings.MAX_FILE_BYTES)
    return await upload_record(db, storage, current_user, data, file.content_type, title, description, tags)


@router.get("", response_model=List[RecordResponse])
async def list_records_endpoint(
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    return await list_own_records(db, current_user)


@router.get("/shared", response_model=List[RecordResponse])
async def list_shared_records_endpoint(
    patient_id: Optional[int] = None,
    current_user: User = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    """Records patients have shared with the calling doctor."""
    return await list_shared_records(db, current_user, patient_id)


@router.get("/{record_id}", response_model=RecordResponse)
async def get_record_endpoint(
    record_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_record(db, record_id, current_user)


@router.delete("/{record_id}")
async def delete_record_endpoint(
    record_id: int,
    current_user: User = Depends(get_current_patient),
    storage: Optional[CloudinaryStorage] = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    await delete_record(db, storage, record_id, current_user)
    return {"message": "Record deleted"}


@router.post("/{record_id}/share", response_model=SharedWithResponse)
async def share_record_endpoint(
    record_id: int,
    share: RecordShareRequest,
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    record = await share_record(db, record_id, current_user, share.doctor_license_id)
    return _share_list("Record shared", record)


@router.delete("/{record_id}/share/{doctor_id}", response_model=SharedWithResponse)
async def unshare_record_endpoint(
    record_id: int,
    doctor_id: int,
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    record = await unshare_record(db, record_id, current_user, doctor_id)
    return _share_list("Record unshared", record)
