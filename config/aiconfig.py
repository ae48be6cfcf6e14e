# config/aiconfig.py
"""
AI Doctor Configuration
OCR provider selection and text-analysis model settings
Supports: OpenAI (gpt-4o vision), Google Gemini
"""
from typing import Literal

from pydantic_settings import BaseSettings


class AISettings(BaseSettings):
    """Configuration for OCR and medical text analysis"""

    # ========================================================================
    # OCR PROVIDER SELECTION
    # ========================================================================
    # "openai" -> gpt-4o reads the report image
    # "gemini" -> Gemini multimodal model reads the report image
    OCR_PROVIDER: Literal["openai", "gemini"] = "openai"

    # ========================================================================
    # OPENAI SETTINGS
    # ========================================================================
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"

    # ========================================================================
    # GEMINI SETTINGS
    # ========================================================================
    GEMINI_API_KEY: str = ""
    GEMINI_VISION_MODEL: str = "gemini-2.0-flash"

    # ========================================================================
    # GENERATION
    # ========================================================================
    OCR_TEMPERATURE: float = 0.0
    OCR_MAX_TOKENS: int = 4000
    ANALYSIS_TEMPERATURE: float = 0.3
    ANALYSIS_MAX_TOKENS: int = 2000
    SAFETY_MAX_TOKENS: int = 500

    # ========================================================================
    # UPLOADS
    # ========================================================================
    SUPPORTED_FORMATS: list = ["image/jpeg", "image/jpg", "image/png", "image/webp"]
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    MAX_IMAGE_SIZE: int = 2048  # Max dimension sent to the OCR model
    MIN_EXTRACTED_CHARS: int = 10

    @property
    def current_ocr_model(self) -> str:
        if self.OCR_PROVIDER == "gemini":
            return self.GEMINI_VISION_MODEL
        return self.OPENAI_MODEL

    @property
    def ocr_configured(self) -> bool:
        if self.OCR_PROVIDER == "gemini":
            return bool(self.GEMINI_API_KEY)
        return bool(self.OPENAI_API_KEY)

    @property
    def analysis_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    class Config:
        env_file = ".env"
        extra = "ignore"


ai_settings = AISettings()
