# bodyid/aisystem/response_normalizer.py
"""
Lenient parsing of model output into the report-analysis shape, plus the
keyword heuristic used when the analysis service is unavailable.
"""
import json
import logging
import re
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

DISCLAIMER = (
    "This analysis is for informational purposes only and does not constitute medical advice. "
    "Always consult with a qualified healthcare professional."
)
DEFAULT_WHEN_TO_SEE_DOCTOR = "Consult with a healthcare professional for proper evaluation."

LIST_FIELDS = (
    "findings",
    "possible_conditions",
    "risk_factors",
    "recommended_tests",
    "otc_medications",
)

# Models sometimes answer with the camelCase keys of older prompts
KEY_ALIASES = {
    "possibleConditions": "possible_conditions",
    "riskFactors": "risk_factors",
    "recommendedTests": "recommended_tests",
    "otcMedications": "otc_medications",
    "whenToSeeDoctor": "when_to_see_doctor",
    "generalAdvice": "general_advice",
}


def parse_model_json(content: str) -> Dict[str, Any]:
    """Parse JSON directly, else the first {...} block. Raises ValueError if neither works."""
    if not content or not content.strip():
        raise ValueError("Empty response from analysis model")

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", content, re.DOTALL)
        if not match:
            raise ValueError("Invalid JSON response from analysis model")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON response from analysis model: {e}")

    if not isinstance(parsed, dict):
        raise ValueError("Analysis model returned JSON that is not an object")
    return parsed


def _as_list(value) -> List[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def normalize_analysis(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Fill every field of the analysis; a disclaimer is always present."""
    data = {KEY_ALIASES.get(k, k): v for k, v in raw.items()}

    result = {"summary": data.get("summary") or "Analysis completed"}
    for field in LIST_FIELDS:
        result[field] = _as_list(data.get(field))
    result["when_to_see_doctor"] = data.get("when_to_see_doctor") or DEFAULT_WHEN_TO_SEE_DOCTOR
    result["general_advice"] = data.get("general_advice") or ""
    result["disclaimer"] = data.get("disclaimer") or DISCLAIMER
    return result


# ============================================================
# ✅ FALLBACK HEURISTIC
# ============================================================
# keyword -> (finding, possible condition)
KEYWORD_FINDINGS = {
    "glucose": ("Blood glucose values are reported", "Blood sugar regulation issue (e.g. diabetes)"),
    "hba1c": ("HbA1c is reported", "Long-term blood sugar control issue"),
    "cholesterol": ("Cholesterol values are reported", "Lipid disorder"),
    "triglyceride": ("Triglyceride values are reported", "Lipid disorder"),
    "hemoglobin": ("Hemoglobin values are reported", "Anemia"),
    "creatinine": ("Creatinine values are reported", "Kidney function concern"),
    "urea": ("Urea values are reported", "Kidney function concern"),
    "bilirubin": ("Bilirubin values are reported", "Liver function concern"),
    "tsh": ("Thyroid (TSH) values are reported", "Thyroid disorder"),
    "blood pressure": ("Blood pressure readings are mentioned", "Hypertension"),
    "infection": ("The report mentions infection", "Infection"),
}
ABNORMAL_MARKERS = ("high", "low", "abnormal", "elevated", "positive", "critical")


def fallback_analysis(text: str) -> Dict[str, Any]:
    """Keyword scan of the extracted text. Used only when the analysis service fails."""
    lowered = (text or "").lower()

    findings, conditions = [], []
    for keyword, (finding, condition) in KEYWORD_FINDINGS.items():
        if keyword in lowered:
            findings.append(finding)
            if condition not in [c["condition"] for c in conditions]:
                conditions.append({
                    "condition": condition,
                    "likelihood": "low",
                    "description": f"Suggested only by the presence of '{keyword}' in the report.",
                })

    flagged = [m for m in ABNORMAL_MARKERS if re.search(rf"\b{m}\b", lowered)]
    if flagged:
        findings.append(f"The report contains values flagged as: {', '.join(flagged)}")

    if not findings:
        findings.append("No recognised laboratory markers were found in the extracted text")

    return normalize_analysis({
        "summary": (
            "Automated AI analysis is unavailable. This is a basic keyword scan of the "
            "extracted text and is not a medical interpretation."
        ),
        "findings": findings,
        "possible_conditions": conditions,
        "recommended_tests": [],
        "when_to_see_doctor": (
            "Share this report with a doctor, especially if any values are flagged as abnormal."
        ),
        "general_advice": "Keep a copy of this report and bring it to your next consultation.",
    })
