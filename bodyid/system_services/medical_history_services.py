# bodyid/system_services/medical_history_services.py
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from bodyid.helpers.errors import Forbidden, NotFound
from bodyid.integrations.storage_client import CloudinaryStorage, require_storage
from bodyid.system_models.medical_history_model.medical_history_model import MedicalHistory
from bodyid.users.user_models.user_model import User

logger = logging.getLogger(__name__)

HISTORY_FOLDER = "medical_history"


async def upload_history(
    db: AsyncSession,
    storage: Optional[CloudinaryStorage],
    patient: User,
    data: bytes,
    description: Optional[str] = None,
) -> MedicalHistory:
    stored = await require_storage(storage).upload(data, folder=HISTORY_FOLDER)

    history = MedicalHistory(
        patient_id=patient.id,
        description=(description or "").strip(),
        file_url=stored.url,
    )
    db.add(history)
    await db.commit()
    await db.refresh(history)

    logger.info(f"✅ Medical history {history.id} uploaded by patient {patient.id}")
    return history


async def list_histories(db: AsyncSession, patient: User) -> List[MedicalHistory]:
    result = await db.execute(
        select(MedicalHistory)
        .where(MedicalHistory.patient_id == patient.id)
        .order_by(MedicalHistory.uploaded_at.desc(), MedicalHistory.id.desc())
    )
    return list(result.scalars().all())


async def get_history(db: AsyncSession, history_id: int, patient: User) -> MedicalHistory:
    history = await db.get(MedicalHistory, history_id)
    if not history:
        raise NotFound("Medical history not found")
    if history.patient_id != patient.id:
        raise Forbidden("Access denied")
    return history
