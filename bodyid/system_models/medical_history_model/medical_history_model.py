# bodyid/system_models/medical_history_model/medical_history_model.py
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from bodyid.database.connection import Base
from bodyid.helpers.time import utcnow


class MedicalHistory(Base):
    __tablename__ = "medical_histories"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    file_url = Column(String, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow)

    patient = relationship("User", back_populates="medical_histories")
