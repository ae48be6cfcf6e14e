# bodyid/system_models/record_model/record_schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SharedDoctor(BaseModel):
    id: int
    name: str
    email: str
    license_id: Optional[str] = None
    specialty: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class RecordBrief(BaseModel):
    id: int
    title: str
    description: str
    file_url: str
    file_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RecordResponse(RecordBrief):
    patient_id: int
    shared_with: List[SharedDoctor] = Field(default_factory=list)


class RecordShareRequest(BaseModel):
    doctor_license_id: str = Field(..., min_length=1)


class SharedWithResponse(BaseModel):
    message: str
    shared_with: List[SharedDoctor]


class PatientRecordsResponse(BaseModel):
    patient: str
    body_id: str
    records: List[RecordBrief]
