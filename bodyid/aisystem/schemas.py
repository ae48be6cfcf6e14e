# bodyid/aisystem/schemas.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportAnalysisResult(BaseModel):
    """Response from the report analysis endpoint."""
    id: int
    message: str
    warning: Optional[str] = Field(None, description="Set when the fallback heuristic was used")
    extracted_text: str = Field(..., description="Preview of the OCR text")
    full_text_length: int
    analysis: Dict[str, Any]
    image_url: Optional[str] = None
    used_fallback: bool = False
    created_at: datetime


class PrescriptionSafetyResult(BaseModel):
    message: str
    safety_reminder: str
    extracted_text: str
    disclaimer: str


class AnalysisHistoryItem(BaseModel):
    id: int
    extracted_text: str
    analysis: Dict[str, Any]
    image_url: Optional[str] = None
    used_fallback: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AnalysisHistoryResponse(BaseModel):
    message: str
    history: List[AnalysisHistoryItem]
