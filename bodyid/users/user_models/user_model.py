# bodyid/users/user_models/user_model.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from bodyid.database.connection import Base
from bodyid.helpers.time import utcnow


class User(Base):
    """A patient, doctor or admin account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    role = Column(String, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)

    # Role-specific login identifiers; NULLs never collide so these are sparse-unique
    national_id = Column(String, unique=True, index=True, nullable=True)
    license_id = Column(String, unique=True, index=True, nullable=True)
    body_id = Column(String, unique=True, index=True, nullable=True)

    # Doctor profile
    specialty = Column(String, nullable=True)
    consultation_fee = Column(Float, nullable=True)
    verified = Column(Boolean, default=False)
    average_rating = Column(Float, nullable=False, default=0)
    total_ratings = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    records = relationship("Record", back_populates="patient", foreign_keys="Record.patient_id")
    medical_histories = relationship("MedicalHistory", back_populates="patient")

    __table_args__ = (
        CheckConstraint("role IN ('patient', 'doctor', 'admin')", name="check_role_values"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, role='{self.role}', name='{self.name}', email='{self.email}')>"
