# bodyid/system_models/rating_model/rating_model.py
from sqlalchemy import Column, Integer, Boolean, DateTime, Text, ForeignKey, CheckConstraint

from bodyid.database.connection import Base
from bodyid.helpers.time import utcnow


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Kept for duplicate checks and audit; never returned by read endpoints
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, unique=True)
    stars = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    anonymous = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        CheckConstraint("stars >= 0 AND stars <= 5", name="check_stars_range"),
    )
