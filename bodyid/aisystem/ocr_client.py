# bodyid/aisystem/ocr_client.py
"""
Unified OCR Client
Routes to the provider chosen by ai_settings.OCR_PROVIDER and maps every
provider failure to UpstreamFailure.
"""
import logging
from typing import Optional

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from config.aiconfig import AISettings
from bodyid.aisystem.image_processor import ImageProcessor
from bodyid.helpers.errors import BodyIDError, UpstreamFailure

logger = logging.getLogger(__name__)

OCR_SUGGESTION = "Please ensure the image is clear and readable, and that the OCR provider is configured."


class OCRClient:

    def __init__(self, provider, provider_name: str):
        self._provider = provider
        self.provider_name = provider_name

    async def extract_text(self, image_bytes: bytes) -> str:
        image = ImageProcessor.preprocess_image(image_bytes)

        try:
            text = await run_in_threadpool(self._provider.extract_text, image)
        except BodyIDError:
            raise
        except Exception as e:
            logger.error(f"❌ OCR via {self.provider_name} failed: {e}")
            raise UpstreamFailure(f"OCR extraction failed: {e}", suggestion=OCR_SUGGESTION)

        text = (text or "").strip()
        if not text:
            raise UpstreamFailure("No text found in the image", suggestion=OCR_SUGGESTION)

        logger.info(f"✅ OCR complete: {len(text)} characters")
        return text


def build_ocr_client(config: AISettings) -> Optional[OCRClient]:
    if not config.ocr_configured:
        logger.warning(f"⚠️ No API key for OCR provider '{config.OCR_PROVIDER}' - OCR disabled")
        return None

    if config.OCR_PROVIDER == "gemini":
        from bodyid.aisystem.gemini_ocr_client import GeminiOCRClient

        provider = GeminiOCRClient(
            api_key=config.GEMINI_API_KEY,
            model=config.GEMINI_VISION_MODEL,
            temperature=config.OCR_TEMPERATURE,
            max_tokens=config.OCR_MAX_TOKENS,
        )
    else:
        from bodyid.aisystem.openai_ocr_client import OpenAIOCRClient

        provider = OpenAIOCRClient(
            api_key=config.OPENAI_API_KEY,
            model=config.OPENAI_MODEL,
            temperature=config.OCR_TEMPERATURE,
            max_tokens=config.OCR_MAX_TOKENS,
        )

    logger.info(f"✅ OCR client ready: {config.OCR_PROVIDER} ({config.current_ocr_model})")
    return OCRClient(provider, config.OCR_PROVIDER)


def get_ocr_client(request: Request) -> Optional[OCRClient]:
    return getattr(request.app.state, "ocr_client", None)


def require_ocr(ocr: Optional[OCRClient]) -> OCRClient:
    if ocr is None:
        raise UpstreamFailure("OCR service is not configured", suggestion=OCR_SUGGESTION)
    return ocr
