# bodyid/system_models/appointment_model/appointment_model.py
import enum

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey, Table
from sqlalchemy.orm import relationship

from bodyid.database.connection import Base
from bodyid.helpers.time import utcnow


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = {
    AppointmentStatus.COMPLETED,
    AppointmentStatus.REJECTED,
    AppointmentStatus.CANCELLED,
}


appointment_records = Table(
    "appointment_records",
    Base.metadata,
    Column("appointment_id", Integer, ForeignKey("appointments.id"), primary_key=True),
    Column("record_id", Integer, ForeignKey("records.id", ondelete="CASCADE"), primary_key=True),
)

appointment_histories = Table(
    "appointment_histories",
    Base.metadata,
    Column("appointment_id", Integer, ForeignKey("appointments.id"), primary_key=True),
    Column("history_id", Integer, ForeignKey("medical_histories.id"), primary_key=True),
)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    body_id = Column(String, nullable=False)
    requested_at = Column(DateTime(timezone=True), default=utcnow)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)

    # Embedded payment sub-record
    payment_amount = Column(Float, nullable=False, default=0)
    payment_provider = Column(String, nullable=False, default="stripe")
    payment_paid = Column(Boolean, nullable=False, default=False)
    payment_id = Column(String, nullable=True)

    doctor_notes = Column(Text, nullable=False, default="")
    prescription_url = Column(String, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    patient = relationship("User", foreign_keys=[patient_id])
    doctor = relationship("User", foreign_keys=[doctor_id])
    attached_records = relationship("Record", secondary=appointment_records)
    attached_histories = relationship("MedicalHistory", secondary=appointment_histories)

    @property
    def payment(self) -> dict:
        return {
            "amount": self.payment_amount,
            "provider": self.payment_provider,
            "paid": self.payment_paid,
            "payment_id": self.payment_id,
        }

    def __repr__(self):
        return f"<Appointment {self.id}: patient={self.patient_id} doctor={self.doctor_id} status={self.status}>"
