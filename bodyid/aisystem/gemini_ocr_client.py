# bodyid/aisystem/gemini_ocr_client.py
"""
Google Gemini OCR Client - Google GenAI SDK
"""
import logging

from google import genai
from google.genai import types
from PIL import Image

from bodyid.aisystem.openai_ocr_client import OCR_PROMPT

logger = logging.getLogger(__name__)


class GeminiOCRClient:

    def __init__(self, api_key: str, model: str, temperature: float = 0.0, max_tokens: int = 4000):
        self._client = genai.Client(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def extract_text(self, image: Image.Image) -> str:
        logger.info(f"🌟 OCR with Gemini {self.model}...")
        # The SDK accepts PIL images directly in contents
        response = self._client.models.generate_content(
            model=self.model,
            contents=[OCR_PROMPT, image],
            config=types.GenerateContentConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_tokens,
            ),
        )
        return response.text or ""
