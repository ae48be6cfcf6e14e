# bodyid/aisystem/ai_services.py
"""
AI Doctor
OCR -> archive -> analyse for report images, and prescription safety checks
against the patient's own records and history.
"""
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config.aiconfig import ai_settings
from bodyid.aisystem.analysis_client import AnalysisClient
from bodyid.aisystem.ocr_client import OCRClient, require_ocr
from bodyid.aisystem.response_normalizer import fallback_analysis
from bodyid.aisystem.schemas import PrescriptionSafetyResult, ReportAnalysisResult
from bodyid.helpers.errors import UpstreamFailure, ValidationError
from bodyid.integrations.storage_client import CloudinaryStorage
from bodyid.system_models.medical_history_model.medical_history_model import MedicalHistory
from bodyid.system_models.record_model.record_model import Record
from bodyid.system_models.report_analysis_model.report_analysis_model import ReportAnalysis
from bodyid.users.user_models.user_model import User

logger = logging.getLogger(__name__)

REPORT_PREVIEW_CHARS = 500
PRESCRIPTION_PREVIEW_CHARS = 200
NO_HISTORY = "No previous medical history found for this patient."
FALLBACK_WARNING = "AI analysis is not configured or unavailable. Basic analysis provided."
SAFETY_REMINDER = (
    "This is a general safety reminder, not medical advice. "
    "Always confirm your prescription with a qualified doctor."
)


def preview(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


async def _archive_image(storage: Optional[CloudinaryStorage], patient: User, data: bytes) -> Optional[str]:
    """Best effort: a failed archival never fails the analysis."""
    if storage is None:
        logger.warning("⚠️ Storage not configured - report image not archived")
        return None
    try:
        stored = await storage.upload(data, folder=f"bodyid/{patient.body_id or patient.id}/ai-reports")
    except UpstreamFailure as e:
        logger.warning(f"⚠️ Report image not archived: {e.message}")
        return None
    return stored.url


# ============================================================
# ✅ ANALYSE REPORT
# ============================================================
async def analyze_report(
    db: AsyncSession,
    ocr: Optional[OCRClient],
    analysis_client: Optional[AnalysisClient],
    storage: Optional[CloudinaryStorage],
    patient: User,
    data: bytes,
) -> ReportAnalysisResult:
    extracted_text = await require_ocr(ocr).extract_text(data)

    if len(extracted_text.strip()) < ai_settings.MIN_EXTRACTED_CHARS:
        raise ValidationError(
            "Insufficient text extracted from image",
            suggestion="Please ensure the image is clear and contains readable text.",
        )

    image_url = await _archive_image(storage, patient, data)

    used_fallback = False
    if analysis_client is None:
        used_fallback = True
    else:
        try:
            analysis = await analysis_client.analyze_report(extracted_text)
        except UpstreamFailure as e:
            logger.warning(f"⚠️ Falling back to heuristic analysis: {e.message}")
            used_fallback = True
    if used_fallback:
        analysis = fallback_analysis(extracted_text)

    record = ReportAnalysis(
        patient_id=patient.id,
        extracted_text=extracted_text,
        analysis=analysis,
        image_url=image_url,
        used_fallback=used_fallback,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)

    logger.info(f"✅ Report analysis {record.id} stored for patient {patient.id} (fallback={used_fallback})")
    return ReportAnalysisResult(
        id=record.id,
        message=(
            "Text extracted successfully. AI analysis unavailable."
            if used_fallback
            else "Medical report analyzed successfully"
        ),
        warning=FALLBACK_WARNING if used_fallback else None,
        extracted_text=preview(extracted_text, REPORT_PREVIEW_CHARS),
        full_text_length=len(extracted_text),
        analysis=analysis,
        image_url=image_url,
        used_fallback=used_fallback,
        created_at=record.created_at,
    )


# ============================================================
# ✅ PRESCRIPTION SAFETY
# ============================================================
async def build_history_summary(db: AsyncSession, patient: User) -> str:
    records = await db.execute(
        select(Record).where(Record.patient_id == patient.id).order_by(Record.created_at, Record.id)
    )
    histories = await db.execute(
        select(MedicalHistory)
        .where(MedicalHistory.patient_id == patient.id)
        .order_by(MedicalHistory.uploaded_at, MedicalHistory.id)
    )

    lines = [
        f"{r.title}: {r.description} (Tags: {', '.join(r.tags or [])})"
        for r in records.scalars().all()
    ]
    lines.extend(h.description for h in histories.scalars().all() if h.description)

    summary = "\n".join(lines).strip()
    return summary or NO_HISTORY


async def check_prescription_safety(
    db: AsyncSession,
    ocr: Optional[OCRClient],
    analysis_client: Optional[AnalysisClient],
    patient: User,
    data: bytes,
) -> PrescriptionSafetyResult:
    prescription_text = await require_ocr(ocr).extract_text(data)

    if analysis_client is None:
        raise UpstreamFailure(
            "AI analysis is not configured",
            suggestion="Set OPENAI_API_KEY to enable prescription safety checks.",
        )

    history_summary = await build_history_summary(db, patient)
    safety_reminder = await analysis_client.prescription_safety(prescription_text, history_summary)

    logger.info(f"✅ Prescription safety check done for patient {patient.id}")
    return PrescriptionSafetyResult(
        message="Prescription analyzed for safety",
        safety_reminder=safety_reminder,
        extracted_text=preview(prescription_text, PRESCRIPTION_PREVIEW_CHARS),
        disclaimer=SAFETY_REMINDER,
    )


# ============================================================
# ✅ HISTORY
# ============================================================
async def list_analyses(db: AsyncSession, patient: User) -> List[ReportAnalysis]:
    result = await db.execute(
        select(ReportAnalysis)
        .where(ReportAnalysis.patient_id == patient.id)
        .order_by(ReportAnalysis.created_at.desc(), ReportAnalysis.id.desc())
    )
    return list(result.scalars().all())
