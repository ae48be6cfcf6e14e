# bodyid/system_models/rating_model/rating_schemas.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class RatingCreate(BaseModel):
    doctor_id: int
    appointment_id: int
    stars: int
    comment: Optional[str] = None

    @field_validator("comment")
    def strip_comment(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None


class RatingResponse(BaseModel):
    """Anonymised view: the submitting patient is never included."""
    id: int
    stars: int
    comment: Optional[str] = None
    anonymous: bool = True
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RatingSubmitted(BaseModel):
    message: str
    rating: RatingResponse
    doctor_average_rating: float
    doctor_total_ratings: int
