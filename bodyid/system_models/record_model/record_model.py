# bodyid/system_models/record_model/record_model.py
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Table, JSON
from sqlalchemy.orm import relationship

from bodyid.database.connection import Base
from bodyid.helpers.time import utcnow


record_shares = Table(
    "record_shares",
    Base.metadata,
    Column("record_id", Integer, ForeignKey("records.id", ondelete="CASCADE"), primary_key=True),
    Column("doctor_id", Integer, ForeignKey("users.id"), primary_key=True),
)


class Record(Base):
    __tablename__ = "records"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False, default="Untitled Record")
    description = Column(Text, nullable=False, default="")
    file_url = Column(String, nullable=False)
    file_public_id = Column(String, nullable=True)  # storage reference, used for deletion
    file_type = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    patient = relationship("User", back_populates="records", foreign_keys=[patient_id])
    shared_with = relationship("User", secondary=record_shares)

    def __repr__(self):
        return f"<Record {self.id}: '{self.title}' patient={self.patient_id}>"
