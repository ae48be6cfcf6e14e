# bodyid/integrations/storage_client.py
"""
Cloudinary Storage Client
Uploads byte buffers into a folder and returns a public URL plus a deletable reference
"""
import logging
from dataclasses import dataclass
from typing import Optional

import cloudinary
import cloudinary.uploader
from fastapi import Request
from starlette.concurrency import run_in_threadpool

from config.integrationsconfig import IntegrationSettings
from bodyid.helpers.errors import UpstreamFailure

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    url: str
    public_id: str


class CloudinaryStorage:

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    async def upload(self, data: bytes, folder: str) -> StoredFile:
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload, data, folder=folder, resource_type="auto"
            )
        except Exception as e:
            logger.error(f"❌ Cloudinary upload to '{folder}' failed: {e}")
            raise UpstreamFailure(f"File storage error: {e}")

        logger.info(f"✅ Stored file {result['public_id']} ({len(data)} bytes)")
        return StoredFile(url=result["secure_url"], public_id=result["public_id"])

    async def delete(self, public_id: str) -> None:
        try:
            await run_in_threadpool(cloudinary.uploader.destroy, public_id)
        except Exception as e:
            logger.error(f"❌ Cloudinary delete of '{public_id}' failed: {e}")
            raise UpstreamFailure(f"File storage error: {e}")


def build_storage_client(config: IntegrationSettings) -> Optional[CloudinaryStorage]:
    if not config.storage_configured:
        logger.warning("⚠️ CLOUDINARY_* credentials not set - file uploads disabled")
        return None
    return CloudinaryStorage(
        cloud_name=config.CLOUDINARY_CLOUD_NAME,
        api_key=config.CLOUDINARY_API_KEY,
        api_secret=config.CLOUDINARY_API_SECRET,
    )


def get_storage_client(request: Request) -> Optional[CloudinaryStorage]:
    return getattr(request.app.state, "storage_client", None)


def require_storage(storage: Optional[CloudinaryStorage]) -> CloudinaryStorage:
    if storage is None:
        raise UpstreamFailure("File storage is not configured")
    return storage
