# bodyid/aisystem/routes.py
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from config.aiconfig import ai_settings
from bodyid.aisystem.ai_services import analyze_report, check_prescription_safety, list_analyses
from bodyid.aisystem.analysis_client import AnalysisClient, get_analysis_client
from bodyid.aisystem.image_processor import ImageProcessor
from bodyid.aisystem.ocr_client import OCRClient, get_ocr_client
from bodyid.aisystem.schemas import (
    AnalysisHistoryItem,
    AnalysisHistoryResponse,
    PrescriptionSafetyResult,
    ReportAnalysisResult,
)
from bodyid.database.connection import get_db
from bodyid.helpers.errors import ValidationError
from bodyid.integrations.storage_client import CloudinaryStorage, get_storage_client
from bodyid.users.auth_dependencies import get_current_patient
from bodyid.users.user_models.user_model import User

router = APIRouter()
logger = logging.getLogger(__name__)


async def _read_image(file: Optional[UploadFile], label: str) -> bytes:
    if file is None or not file.filename:
        raise ValidationError(f"No {label} image uploaded")
    data = await file.read()
    ImageProcessor.validate_image(file.content_type, len(data))
    return data


@router.post("/analyze-report", response_model=ReportAnalysisResult)
async def analyze_report_endpoint(
    report_image: UploadFile = File(...),
    current_user: User = Depends(get_current_patient),
    ocr: Optional[OCRClient] = Depends(get_ocr_client),
    analysis_client: Optional[AnalysisClient] = Depends(get_analysis_client),
    storage: Optional[CloudinaryStorage] = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
):
    """OCR a medical report image and return an advisory AI analysis."""
    logger.info(f"🔍 Report analysis requested by patient {current_user.id} (OCR: {ai_settings.OCR_PROVIDER})")
    data = await _read_image(report_image, "report")

    start_time = time.time()
    result = await analyze_report(db, ocr, analysis_client, storage, current_user, data)
    logger.info(f"✅ Analysis complete in {time.time() - start_time:.2f}s")
    return result


@router.post("/check-prescription-safety", response_model=PrescriptionSafetyResult)
async def check_prescription_safety_endpoint(
    prescription: UploadFile = File(...),
    current_user: User = Depends(get_current_patient),
    ocr: Optional[OCRClient] = Depends(get_ocr_client),
    analysis_client: Optional[AnalysisClient] = Depends(get_analysis_client),
    db: AsyncSession = Depends(get_db),
):
    data = await _read_image(prescription, "prescription")
    return await check_prescription_safety(db, ocr, analysis_client, current_user, data)


@router.get("/history", response_model=AnalysisHistoryResponse)
async def analysis_history_endpoint(
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    analyses = await list_analyses(db, current_user)
    return AnalysisHistoryResponse(
        message="Analysis history retrieved",
        history=[AnalysisHistoryItem.model_validate(a) for a in analyses],
    )
