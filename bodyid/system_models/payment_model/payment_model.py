# bodyid/system_models/payment_model/payment_model.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint

from bodyid.database.connection import Base
from bodyid.helpers.time import utcnow


class Payment(Base):
    """Audit row for a payment transaction."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Float, nullable=False)
    provider = Column(String, nullable=False, default="fake")
    transaction_id = Column(String, unique=True, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    status = Column(String, nullable=False, default="initiated")
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        CheckConstraint("provider IN ('stripe', 'fake')", name="check_payment_provider"),
        CheckConstraint("status IN ('initiated', 'success', 'failed')", name="check_payment_status"),
    )
