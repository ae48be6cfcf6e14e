# bodyid/system_services/payment_services.py
"""
Payment Recorder
Two entry points (processor webhook and demo shortcut) converge on mark_paid.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from config.appconfig import settings
from bodyid.helpers.errors import Conflict, Forbidden, NotFound, UpstreamFailure, ValidationError
from bodyid.helpers.time import utcnow
from bodyid.integrations.payment_gateway import PAYMENT_SUCCEEDED, StripeGateway
from bodyid.system_models.appointment_model.appointment_model import (
    Appointment,
    AppointmentStatus,
    TERMINAL_STATUSES,
)
from bodyid.system_models.payment_model.payment_model import Payment
from bodyid.system_services.appointment_services import load_appointment
from bodyid.users.user_models.user_model import User

logger = logging.getLogger(__name__)

# Statuses a payment may still land on
PAYABLE_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)


async def _owned_appointment(db: AsyncSession, appointment_id: int, patient: User) -> Appointment:
    appointment = await db.get(Appointment, appointment_id, populate_existing=True)
    if not appointment:
        raise NotFound("Appointment not found")
    if appointment.patient_id != patient.id:
        raise Forbidden("Unauthorized")
    return appointment


# ============================================================
# ✅ MARK PAID (shared by webhook and demo paths)
# ============================================================
async def mark_paid(
    db: AsyncSession,
    appointment_id: int,
    amount: float,
    provider: str,
    payment_id: str,
) -> bool:
    """
    Flip the embedded payment to paid and advance pending -> paid, in one UPDATE.

    Returns False when nothing changed (already paid, terminal, or missing).
    The caller owns the commit.
    """
    result = await db.execute(
        update(Appointment)
        .where(
            Appointment.id == appointment_id,
            Appointment.payment_paid.is_(False),
            Appointment.status.in_(PAYABLE_STATUSES),
        )
        .values(
            payment_paid=True,
            payment_amount=amount,
            payment_provider=provider,
            payment_id=payment_id,
            status=case(
                (Appointment.status == AppointmentStatus.PENDING.value, AppointmentStatus.PAID.value),
                else_=Appointment.status,
            ),
        )
    )
    return result.rowcount == 1


# ============================================================
# ✅ DIRECT INTENT PATH
# ============================================================
async def create_payment_intent(
    db: AsyncSession,
    gateway: Optional[StripeGateway],
    appointment_id: int,
    amount: float,
    patient: User,
) -> str:
    if amount is None or amount <= 0:
        raise ValidationError("Invalid payment amount")

    appointment = await _owned_appointment(db, appointment_id, patient)
    if appointment.payment_paid:
        raise Conflict("Appointment already paid")
    if AppointmentStatus(appointment.status) in TERMINAL_STATUSES:
        raise Conflict(f"Appointment is already {appointment.status}")

    if gateway is None:
        raise UpstreamFailure(
            "Payment processor is not configured",
            suggestion="Set STRIPE_SECRET_KEY and STRIPE_WEBHOOK_SECRET",
        )

    return await run_in_threadpool(gateway.create_intent, appointment.id, amount)


# ============================================================
# ✅ PROCESSOR-CONFIRMED PATH
# ============================================================
async def handle_webhook(
    db: AsyncSession,
    gateway: Optional[StripeGateway],
    payload: bytes,
    signature: Optional[str],
) -> None:
    """Verify and apply a processor event. Unknown appointments are logged, never raised."""
    if gateway is None:
        raise UpstreamFailure("Payment processor is not configured")

    event = gateway.parse_event(payload, signature)
    if event.type != PAYMENT_SUCCEEDED:
        logger.info(f"Ignoring payment event type {event.type}")
        return

    try:
        appointment_id = int(event.appointment_id)
    except (TypeError, ValueError):
        logger.warning(f"⚠️ Payment {event.intent_id} carries no usable appointment id")
        return

    changed = await mark_paid(
        db,
        appointment_id,
        amount=event.amount_minor / 100,
        provider="stripe",
        payment_id=event.intent_id,
    )
    await db.commit()

    if changed:
        logger.info(f"✅ Payment {event.intent_id} recorded for appointment {appointment_id}")
    else:
        logger.warning(
            f"⚠️ Payment {event.intent_id} not applied: appointment {appointment_id} missing, paid or closed"
        )


# ============================================================
# ✅ DEMO SHORTCUT PATH
# ============================================================
def _fake_transaction_id() -> str:
    return f"FAKE-{utcnow():%Y%m%d%H%M%S}-{uuid.uuid4().hex[:8].upper()}"


async def fake_payment(db: AsyncSession, appointment_id: int, amount: float, patient: User) -> Appointment:
    if not settings.fake_payments_enabled:
        raise Forbidden("Demo payments are disabled in this environment")

    if amount is None or amount <= 0:
        raise ValidationError("Invalid payment amount")

    appointment = await _owned_appointment(db, appointment_id, patient)
    if appointment.payment_paid:
        raise Conflict("Appointment already paid")
    if AppointmentStatus(appointment.status) in TERMINAL_STATUSES:
        raise Conflict(f"Appointment is already {appointment.status}")

    transaction_id = _fake_transaction_id()
    db.add(
        Payment(
            appointment_id=appointment.id,
            patient_id=patient.id,
            doctor_id=appointment.doctor_id,
            amount=amount,
            provider="fake",
            transaction_id=transaction_id,
            paid=True,
            status="success",
        )
    )

    if not await mark_paid(db, appointment.id, amount=amount, provider="fake", payment_id=transaction_id):
        await db.rollback()
        raise Conflict("Appointment was paid or closed by another request")
    await db.commit()

    logger.info(f"✅ Demo payment {transaction_id} recorded for appointment {appointment.id}")
    return await load_appointment(db, appointment.id)
