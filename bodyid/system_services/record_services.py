# bodyid/system_services/record_services.py
"""
Medical Records
Patient-owned files with a share list of doctors.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from bodyid.helpers.errors import Conflict, Forbidden, NotFound, PreconditionFailed, UpstreamFailure
from bodyid.integrations.storage_client import CloudinaryStorage, require_storage
from bodyid.system_models.appointment_model.appointment_model import Appointment, appointment_records
from bodyid.system_models.record_model.record_model import Record, record_shares
from bodyid.users.user_models.user_model import User

logger = logging.getLogger(__name__)


def parse_tags(raw: Optional[str]) -> List[str]:
    """'blood, lab ,,2024' -> ['blood', 'lab', '2024']"""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


async def _load_record(db: AsyncSession, record_id: int) -> Optional[Record]:
    result = await db.execute(
        select(Record)
        .where(Record.id == record_id)
        .options(selectinload(Record.shared_with))
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def _owned_record(db: AsyncSession, record_id: int, patient: User) -> Record:
    record = await _load_record(db, record_id)
    if not record:
        raise NotFound("Record not found")
    if record.patient_id != patient.id:
        raise Forbidden("Access denied")
    return record


# ============================================================
# ✅ UPLOAD
# ============================================================
async def upload_record(
    db: AsyncSession,
    storage: Optional[CloudinaryStorage],
    patient: User,
    data: bytes,
    content_type: Optional[str],
    title: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[str] = None,
) -> Record:
    if not patient.body_id:
        raise PreconditionFailed("Patient must have a body id to upload records")

    stored = await require_storage(storage).upload(data, folder=f"bodyid/{patient.body_id}/records")

    record = Record(
        patient_id=patient.id,
        title=(title or "").strip() or "Untitled Record",
        description=(description or "").strip(),
        file_url=stored.url,
        file_public_id=stored.public_id,
        file_type=content_type,
        tags=parse_tags(tags),
    )
    db.add(record)
    await db.commit()

    logger.info(f"✅ Record {record.id} uploaded by patient {patient.id}")
    return await _load_record(db, record.id)


# ============================================================
# ✅ READ
# ============================================================
async def list_own_records(db: AsyncSession, patient: User) -> List[Record]:
    result = await db.execute(
        select(Record)
        .where(Record.patient_id == patient.id)
        .options(selectinload(Record.shared_with))
        .order_by(Record.created_at.desc(), Record.id.desc())
    )
    return list(result.scalars().all())


async def list_shared_records(db: AsyncSession, doctor: User, patient_id: Optional[int] = None) -> List[Record]:
    query = (
        select(Record)
        .join(record_shares, record_shares.c.record_id == Record.id)
        .where(record_shares.c.doctor_id == doctor.id)
    )
    if patient_id is not None:
        query = query.where(Record.patient_id == patient_id)

    result = await db.execute(
        query.options(selectinload(Record.shared_with)).order_by(Record.created_at.desc(), Record.id.desc())
    )
    return list(result.scalars().all())


async def get_record(db: AsyncSession, record_id: int, user: User) -> Record:
    record = await _load_record(db, record_id)
    if not record:
        raise NotFound("Record not found")
    if record.patient_id != user.id and user.id not in {d.id for d in record.shared_with}:
        raise Forbidden("Access denied")
    return record


async def records_by_body_id(db: AsyncSession, doctor: User, body_id: str) -> Tuple[User, List[Record]]:
    """A patient's records, for a doctor who has at least one appointment with them."""
    result = await db.execute(select(User).where(User.body_id == body_id, User.role == "patient"))
    patient = result.scalars().first()
    if not patient:
        raise NotFound("Patient not found")

    link = await db.execute(
        select(Appointment.id).where(
            Appointment.doctor_id == doctor.id,
            Appointment.patient_id == patient.id,
        ).limit(1)
    )
    if link.scalars().first() is None:
        raise Forbidden("You have no appointments with this patient")

    return patient, await list_own_records(db, patient)


# ============================================================
# ✅ DELETE
# ============================================================
async def delete_record(
    db: AsyncSession,
    storage: Optional[CloudinaryStorage],
    record_id: int,
    patient: User,
) -> None:
    record = await _owned_record(db, record_id, patient)

    if record.file_public_id and storage is not None:
        try:
            await storage.delete(record.file_public_id)
        except UpstreamFailure as e:
            logger.warning(f"⚠️ Stored file for record {record.id} not deleted: {e.message}")

    await db.execute(delete(appointment_records).where(appointment_records.c.record_id == record.id))
    await db.delete(record)
    await db.commit()
    logger.info(f"🗑️ Record {record_id} deleted by patient {patient.id}")


# ============================================================
# ✅ SHARING
# ============================================================
async def share_record(db: AsyncSession, record_id: int, patient: User, doctor_license_id: str) -> Record:
    record = await _owned_record(db, record_id, patient)

    result = await db.execute(
        select(User).where(User.license_id == doctor_license_id.strip(), User.role == "doctor")
    )
    doctor = result.scalars().first()
    if not doctor:
        raise NotFound("Doctor not found")

    if any(d.id == doctor.id for d in record.shared_with):
        raise Conflict("Already shared with this doctor")

    record.shared_with.append(doctor)
    await db.commit()

    logger.info(f"🔗 Record {record.id} shared with doctor {doctor.id}")
    return await _load_record(db, record.id)


async def unshare_record(db: AsyncSession, record_id: int, patient: User, doctor_id: int) -> Record:
    record = await _owned_record(db, record_id, patient)

    doctor = next((d for d in record.shared_with if d.id == doctor_id), None)
    if doctor is None:
        raise NotFound("Record is not shared with this doctor")

    record.shared_with.remove(doctor)
    await db.commit()

    logger.info(f"🔗 Record {record.id} unshared from doctor {doctor_id}")
    return await _load_record(db, record.id)
