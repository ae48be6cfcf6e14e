# bodyid/system_services/appointment_services.py
"""
Appointment Ledger
Creates appointments, applies status transitions and enforces who may see or move them.

State machine:
    pending -> paid -> confirmed -> completed
    pending | paid | confirmed -> cancelled   (patient)
    pending | paid -> rejected                (doctor)
`paid` is only reachable through the payment recorder.
"""
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from bodyid.helpers.errors import Conflict, Forbidden, NotFound, PreconditionFailed, ValidationError
from bodyid.helpers.time import as_utc, utcnow
from bodyid.system_models.appointment_model.appointment_model import (
    Appointment,
    AppointmentStatus,
    TERMINAL_STATUSES,
)
from bodyid.system_models.appointment_model.appointment_schemas import AppointmentCreate, VisitNotes
from bodyid.system_models.medical_history_model.medical_history_model import MedicalHistory
from bodyid.system_models.record_model.record_model import Record
from bodyid.users.user_models.user_model import User

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.PAID: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    },
}

# Which party on the appointment may request each status
TRANSITION_ACTORS = {
    AppointmentStatus.CONFIRMED: "doctor",
    AppointmentStatus.REJECTED: "doctor",
    AppointmentStatus.COMPLETED: "doctor",
    AppointmentStatus.CANCELLED: "patient",
}


async def load_appointment(db: AsyncSession, appointment_id: int) -> Optional[Appointment]:
    """Fetch one appointment with counterpart identities and attachments populated."""
    result = await db.execute(
        select(Appointment)
        .where(Appointment.id == appointment_id)
        .options(
            selectinload(Appointment.patient),
            selectinload(Appointment.doctor),
            selectinload(Appointment.attached_records),
            selectinload(Appointment.attached_histories),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def _owned_attachments(db: AsyncSession, model, owner_column, ids: List[int], patient_id: int, label: str):
    if not ids:
        return []
    unique_ids = set(ids)
    result = await db.execute(select(model).where(model.id.in_(unique_ids), owner_column == patient_id))
    found = result.scalars().all()
    if len(found) != len(unique_ids):
        missing = sorted(unique_ids - {item.id for item in found})
        raise ValidationError(f"Unknown {label} ids: {missing}")
    return list(found)


# ============================================================
# ✅ CREATE
# ============================================================
async def create_appointment(db: AsyncSession, patient: User, data: AppointmentCreate) -> Appointment:
    if not patient.body_id:
        raise PreconditionFailed("Patient must have a body id to create an appointment")

    doctor = await db.get(User, data.doctor_id)
    if not doctor or doctor.role != "doctor":
        raise NotFound("Doctor not found")

    if not doctor.consultation_fee or doctor.consultation_fee <= 0:
        raise ValidationError("Invalid appointment fee")

    scheduled_at = as_utc(data.scheduled_at)
    if scheduled_at <= utcnow():
        raise ValidationError("Scheduled date must be in the future")

    records = await _owned_attachments(
        db, Record, Record.patient_id, data.attached_record_ids, patient.id, "record"
    )
    histories = await _owned_attachments(
        db, MedicalHistory, MedicalHistory.patient_id, data.attached_history_ids, patient.id, "medical history"
    )

    appointment = Appointment(
        patient_id=patient.id,
        doctor_id=doctor.id,
        body_id=patient.body_id,
        requested_at=utcnow(),
        scheduled_at=scheduled_at,
        status=AppointmentStatus.PENDING.value,
        payment_amount=doctor.consultation_fee,
        payment_provider="stripe",
        payment_paid=False,
        payment_id=None,
        attached_records=records,
        attached_histories=histories,
    )
    db.add(appointment)
    await db.commit()

    logger.info(f"✅ Appointment {appointment.id} created: patient={patient.id} doctor={doctor.id}")
    return await load_appointment(db, appointment.id)


# ============================================================
# ✅ READ
# ============================================================
async def list_appointments(db: AsyncSession, user: User) -> List[Appointment]:
    if user.role == "doctor":
        owner_filter = Appointment.doctor_id == user.id
    elif user.role == "patient":
        owner_filter = Appointment.patient_id == user.id
    else:
        raise Forbidden("Unauthorized role")

    result = await db.execute(
        select(Appointment)
        .where(owner_filter)
        .options(
            selectinload(Appointment.patient),
            selectinload(Appointment.doctor),
            selectinload(Appointment.attached_records),
            selectinload(Appointment.attached_histories),
        )
        .order_by(Appointment.created_at.desc(), Appointment.id.desc())
    )
    return list(result.scalars().all())


async def get_appointment(db: AsyncSession, appointment_id: int, user: User) -> Appointment:
    appointment = await load_appointment(db, appointment_id)
    if not appointment:
        raise NotFound("Appointment not found")
    if user.id not in (appointment.patient_id, appointment.doctor_id):
        raise Forbidden("Access denied")
    return appointment


# ============================================================
# ✅ TRANSITIONS
# ============================================================
async def _get_for_actor(db: AsyncSession, appointment_id: int, user: User, actor: str) -> Appointment:
    appointment = await db.get(Appointment, appointment_id, populate_existing=True)
    if not appointment:
        raise NotFound("Appointment not found")
    owner_id = appointment.doctor_id if actor == "doctor" else appointment.patient_id
    if user.id != owner_id:
        raise Forbidden(f"Only the assigned {actor} can make this change")
    return appointment


async def transition(
    db: AsyncSession,
    appointment: Appointment,
    target: AppointmentStatus,
    **values,
) -> Appointment:
    """
    Move an appointment to `target`, compare-and-swap on its current status.

    Raises Conflict when the appointment is terminal or changed underneath us,
    PreconditionFailed when the state machine does not allow the move.
    """
    current = AppointmentStatus(appointment.status)
    if current in TERMINAL_STATUSES:
        raise Conflict(f"Appointment is already {current.value}")
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise PreconditionFailed(f"Cannot move appointment from {current.value} to {target.value}")

    result = await db.execute(
        update(Appointment)
        .where(Appointment.id == appointment.id, Appointment.status == current.value)
        .values(status=target.value, **values)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise Conflict("Appointment was modified by another request, reload and retry")
    await db.commit()

    logger.info(f"✅ Appointment {appointment.id}: {current.value} -> {target.value}")
    return await load_appointment(db, appointment.id)


async def set_status(db: AsyncSession, appointment_id: int, new_status: str, user: User) -> Appointment:
    try:
        target = AppointmentStatus(new_status)
    except ValueError:
        allowed = ", ".join(s.value for s in AppointmentStatus)
        raise ValidationError(f"Invalid status value. Allowed: {allowed}")

    actor = TRANSITION_ACTORS.get(target)
    if actor is None:
        if not await db.get(Appointment, appointment_id):
            raise NotFound("Appointment not found")
        raise PreconditionFailed(f"Status '{target.value}' cannot be set directly")

    appointment = await _get_for_actor(db, appointment_id, user, actor)
    return await transition(db, appointment, target)


async def confirm_appointment(db: AsyncSession, appointment_id: int, doctor: User) -> Appointment:
    appointment = await _get_for_actor(db, appointment_id, doctor, "doctor")
    return await transition(db, appointment, AppointmentStatus.CONFIRMED)


async def reject_appointment(db: AsyncSession, appointment_id: int, doctor: User) -> Appointment:
    appointment = await _get_for_actor(db, appointment_id, doctor, "doctor")
    return await transition(db, appointment, AppointmentStatus.REJECTED)


async def add_visit_notes(db: AsyncSession, appointment_id: int, doctor: User, notes: VisitNotes) -> Appointment:
    """Record the doctor's notes and prescription; completes the consultation."""
    appointment = await _get_for_actor(db, appointment_id, doctor, "doctor")
    return await transition(
        db,
        appointment,
        AppointmentStatus.COMPLETED,
        doctor_notes=notes.doctor_notes or appointment.doctor_notes,
        prescription_url=notes.prescription_url or appointment.prescription_url,
    )
