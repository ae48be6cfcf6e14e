# bodyid/system_models/appointment_model/appointment_schemas.py
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bodyid.system_models.appointment_model.appointment_model import AppointmentStatus
from bodyid.system_models.medical_history_model.medical_history_schemas import MedicalHistoryBrief
from bodyid.system_models.record_model.record_schemas import RecordBrief
from bodyid.users.user_models.schemas import UserBrief


def _as_id_list(v):
    """Accept a single id or a list of ids."""
    if v is None:
        return []
    if isinstance(v, (list, tuple)):
        return list(v)
    return [v]


class AppointmentCreate(BaseModel):
    doctor_id: int
    scheduled_at: datetime
    attached_record_ids: Union[List[int], int, None] = None
    attached_history_ids: Union[List[int], int, None] = None

    @field_validator("attached_record_ids", "attached_history_ids", mode="after")
    def normalize_ids(cls, v):
        return _as_id_list(v)


class AppointmentStatusUpdate(BaseModel):
    status: str

    @field_validator("status", mode="before")
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class VisitNotes(BaseModel):
    doctor_notes: Optional[str] = None
    prescription_url: Optional[str] = None


class PaymentInfo(BaseModel):
    amount: float
    provider: str
    paid: bool
    payment_id: Optional[str] = None


class AppointmentResponse(BaseModel):
    id: int
    patient: UserBrief
    doctor: UserBrief
    body_id: str
    requested_at: datetime
    scheduled_at: datetime
    status: AppointmentStatus
    payment: PaymentInfo
    attached_records: List[RecordBrief] = Field(default_factory=list)
    attached_histories: List[MedicalHistoryBrief] = Field(default_factory=list)
    doctor_notes: str = ""
    prescription_url: str = ""
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
