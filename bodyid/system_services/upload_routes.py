# bodyid/system_services/upload_routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from config.appconfig import settings
from bodyid.helpers.uploads import read_upload
from bodyid.integrations.storage_client import CloudinaryStorage, get_storage_client, require_storage
from bodyid.users.auth_dependencies import get_current_user
from bodyid.users.user_models.user_model import User

logger = logging.getLogger(__name__)

router = APIRouter()


class UploadResponse(BaseModel):
    url: str
    public_id: str


@router.post("/single", response_model=UploadResponse)
async def upload_single_endpoint(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    storage: Optional[CloudinaryStorage] = Depends(get_storage_client),
):
    """Store one file and return its URL, e.g. a prescription to attach to visit notes."""
    data = await read_upload(file, settings.MAX_FILE_BYTES)
    stored = await require_storage(storage).upload(data, folder=f"bodyid/uploads/{current_user.id}")
    return UploadResponse(url=stored.url, public_id=stored.public_id)
