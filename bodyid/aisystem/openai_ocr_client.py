# bodyid/aisystem/openai_ocr_client.py
"""
OpenAI Vision OCR Client
gpt-4o transcribes the text printed on a medical report image
"""
import base64
import logging

from openai import OpenAI
from PIL import Image

from bodyid.aisystem.image_processor import ImageProcessor

logger = logging.getLogger(__name__)

OCR_PROMPT = """Transcribe ALL text visible in this medical document image.

Rules:
- Output only the transcribed text, nothing else.
- Preserve line breaks, table rows, units and reference ranges.
- Do not interpret, summarise or correct values.
- If the image contains no readable text, output nothing."""


class OpenAIOCRClient:

    def __init__(self, api_key: str, model: str, temperature: float = 0.0, max_tokens: int = 4000):
        self._client = OpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def extract_text(self, image: Image.Image) -> str:
        b64_image = base64.b64encode(ImageProcessor.to_png_bytes(image)).decode()

        logger.info(f"🔍 OCR with {self.model}...")
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": OCR_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:image/png;base64,{b64_image}",
                                "detail": "high",
                            },
                        },
                    ],
                }
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return response.choices[0].message.content or ""
