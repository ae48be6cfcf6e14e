# bodyid/system_services/rating_services.py
"""
Rating Aggregator
One anonymous rating per appointment; the doctor's running average is updated
with a single UPDATE expression in the same transaction as the insert.
"""
import logging
from typing import List, Tuple

from sqlalchemy import Numeric, cast, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from bodyid.helpers.errors import Conflict, NotFound, PreconditionFailed, ValidationError
from bodyid.system_models.appointment_model.appointment_model import Appointment, AppointmentStatus
from bodyid.system_models.rating_model.rating_model import Rating
from bodyid.system_models.rating_model.rating_schemas import RatingCreate
from bodyid.users.user_models.user_model import User

logger = logging.getLogger(__name__)

MIN_STARS = 0
MAX_STARS = 5
RATEABLE_STATUSES = {AppointmentStatus.COMPLETED.value, AppointmentStatus.CONFIRMED.value}


# ============================================================
# ✅ SUBMIT
# ============================================================
async def submit_rating(db: AsyncSession, patient: User, data: RatingCreate) -> Tuple[Rating, User]:
    if not MIN_STARS <= data.stars <= MAX_STARS:
        raise ValidationError(f"Stars must be between {MIN_STARS} and {MAX_STARS}")

    result = await db.execute(
        select(Appointment).where(
            Appointment.id == data.appointment_id,
            Appointment.patient_id == patient.id,
            Appointment.doctor_id == data.doctor_id,
        )
    )
    appointment = result.scalars().first()
    if not appointment:
        raise NotFound("Appointment not found")

    if appointment.status not in RATEABLE_STATUSES:
        raise PreconditionFailed("You can rate only after consultation")

    existing = await db.execute(select(Rating.id).where(Rating.appointment_id == appointment.id))
    if existing.scalars().first() is not None:
        raise Conflict("You have already rated this appointment")

    rating = Rating(
        doctor_id=data.doctor_id,
        patient_id=patient.id,
        appointment_id=appointment.id,
        stars=data.stars,
        comment=data.comment,
        anonymous=True,
    )
    db.add(rating)

    new_average = (User.average_rating * User.total_ratings + data.stars) / (User.total_ratings + 1)
    await db.execute(
        update(User)
        .where(User.id == data.doctor_id)
        .values(
            total_ratings=User.total_ratings + 1,
            average_rating=func.round(cast(new_average, Numeric), 2),
        )
        .execution_options(synchronize_session=False)
    )

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent submission for the same appointment won
        await db.rollback()
        raise Conflict("You have already rated this appointment")

    await db.refresh(rating)
    doctor = await db.get(User, data.doctor_id, populate_existing=True)

    logger.info(
        f"⭐ Rating {rating.id} for doctor {doctor.id}: "
        f"avg={doctor.average_rating} over {doctor.total_ratings}"
    )
    return rating, doctor


# ============================================================
# ✅ LIST FOR DOCTOR
# ============================================================
async def list_ratings(db: AsyncSession, doctor_id: int) -> List[Rating]:
    result = await db.execute(
        select(Rating)
        .where(Rating.doctor_id == doctor_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
    )
    return list(result.scalars().all())
