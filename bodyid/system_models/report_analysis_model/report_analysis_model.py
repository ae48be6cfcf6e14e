# bodyid/system_models/report_analysis_model/report_analysis_model.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON

from bodyid.database.connection import Base
from bodyid.helpers.time import utcnow


class ReportAnalysis(Base):
    """One AI Doctor run over an uploaded medical report."""

    __tablename__ = "report_analyses"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    extracted_text = Column(Text, nullable=False)
    analysis = Column(JSON, nullable=False)
    image_url = Column(String, nullable=True)
    used_fallback = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
