# bodyid/system_models/medical_history_model/medical_history_schemas.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MedicalHistoryBrief(BaseModel):
    id: int
    description: str
    file_url: str
    uploaded_at: datetime
    model_config = ConfigDict(from_attributes=True)


class MedicalHistoryResponse(MedicalHistoryBrief):
    patient_id: int
