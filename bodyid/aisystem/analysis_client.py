# bodyid/aisystem/analysis_client.py
"""
Medical Text Analysis Client (OpenAI chat completions)
Report analysis in JSON mode, and free-text prescription safety reminders.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from openai import OpenAI, OpenAIError
from starlette.concurrency import run_in_threadpool

from config.aiconfig import AISettings
from bodyid.aisystem.response_normalizer import normalize_analysis, parse_model_json
from bodyid.helpers.errors import UpstreamFailure

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = (
    "You are a helpful AI medical assistant. Provide accurate, evidence-based medical "
    "information with appropriate disclaimers. Always emphasize the importance of "
    "consulting with qualified healthcare professionals."
)

MEDICAL_ANALYSIS_PROMPT = """Analyze the following medical report or medical history text.

IMPORTANT: This is for informational purposes only and must NOT replace professional medical advice.

Medical Report Text:
{extracted_text}

Respond with a JSON object using exactly these keys:
{{
  "summary": "Brief summary of the report (2-3 sentences)",
  "findings": ["Key findings from the report"],
  "possible_conditions": [
    {{"condition": "Condition name", "likelihood": "low|medium|high", "description": "Brief description"}}
  ],
  "risk_factors": ["Identified risk factors"],
  "recommended_tests": [
    {{"test": "Test name", "reason": "Why it is recommended", "priority": "low|medium|high"}}
  ],
  "otc_medications": [
    {{"medication": "Name", "purpose": "What it is for", "dosage": "If applicable", "warnings": "Contraindications"}}
  ],
  "when_to_see_doctor": "When to consult a real doctor",
  "general_advice": "General health advice based on the report",
  "disclaimer": "This analysis is for informational purposes only and does not constitute medical advice."
}}"""

SAFETY_SYSTEM_PROMPT = (
    "You are a healthcare assistant in the BodyID platform. Follow the instructions strictly "
    "and do not provide medical advice or prescriptions."
)

PRESCRIPTION_SAFETY_PROMPT = """Your role is NOT to provide medicine, diagnosis, or treatment.
Help the patient understand their prescription with a general safety reminder based on their medical history.

Medical History / Previous Conditions:
{medical_history}

Extracted Prescription Text:
{prescription_text}

1. Read the medicine names from the prescription.
2. Compare them with the patient's known medical conditions.
3. If a medicine needs special caution for an existing condition, give a simple reminder.
   Do not say the medicine is right or wrong and do not suggest alternatives.

Strict rules: do not recommend medicines, change prescriptions, diagnose, or suggest dosage.
Always advise contacting a qualified doctor. Use simple, patient-friendly language.

If no specific concern is found, remind the patient to follow the doctor's instructions."""

NO_REMINDER = "No safety reminder generated. Please consult your doctor."


class AnalysisClient:

    def __init__(self, api_key: str, config: AISettings):
        self._client = OpenAI(api_key=api_key)
        self.model = config.OPENAI_MODEL
        self._config = config

    def _complete(self, system: str, prompt: str, max_tokens: int, json_mode: bool = False) -> str:
        kwargs = {"response_format": {"type": "json_object"}} if json_mode else {}
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=self._config.ANALYSIS_TEMPERATURE,
            max_tokens=max_tokens,
            **kwargs,
        )
        return response.choices[0].message.content or ""

    async def analyze_report(self, text: str) -> Dict[str, Any]:
        logger.info(f"🧠 Analysing {len(text)} characters with {self.model}...")
        try:
            content = await run_in_threadpool(
                self._complete,
                ANALYSIS_SYSTEM_PROMPT,
                MEDICAL_ANALYSIS_PROMPT.format(extracted_text=text),
                self._config.ANALYSIS_MAX_TOKENS,
                True,
            )
            analysis = normalize_analysis(parse_model_json(content))
        except (OpenAIError, ValueError) as e:
            logger.error(f"❌ Report analysis failed: {e}")
            raise UpstreamFailure(f"AI analysis failed: {e}")

        logger.info("✅ Report analysis complete")
        return analysis

    async def prescription_safety(self, prescription_text: str, history_text: str) -> str:
        try:
            content = await run_in_threadpool(
                self._complete,
                SAFETY_SYSTEM_PROMPT,
                PRESCRIPTION_SAFETY_PROMPT.format(
                    medical_history=history_text,
                    prescription_text=prescription_text,
                ),
                self._config.SAFETY_MAX_TOKENS,
            )
        except OpenAIError as e:
            logger.error(f"❌ Prescription safety check failed: {e}")
            raise UpstreamFailure(f"Failed to analyze prescription: {e}")

        return content.strip() or NO_REMINDER


def build_analysis_client(config: AISettings) -> Optional[AnalysisClient]:
    if not config.analysis_configured:
        logger.warning("⚠️ OPENAI_API_KEY not set - AI analysis will use the fallback heuristic")
        return None
    return AnalysisClient(api_key=config.OPENAI_API_KEY, config=config)


def get_analysis_client(request: Request) -> Optional[AnalysisClient]:
    return getattr(request.app.state, "analysis_client", None)
