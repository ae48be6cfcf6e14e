# bodyid/aisystem/image_processor.py
import io
import logging

from PIL import Image, UnidentifiedImageError

from config.aiconfig import ai_settings
from bodyid.helpers.errors import ValidationError

logger = logging.getLogger(__name__)


class ImageProcessor:
    """Validate and normalise uploaded report images before OCR."""

    @staticmethod
    def validate_image(content_type: str, size_bytes: int) -> bool:
        if content_type not in ai_settings.SUPPORTED_FORMATS:
            raise ValidationError(
                f"Unsupported format: {content_type}",
                suggestion=f"Upload one of: {', '.join(ai_settings.SUPPORTED_FORMATS)}",
            )
        if size_bytes == 0:
            raise ValidationError("Uploaded image is empty")
        if size_bytes > ai_settings.MAX_UPLOAD_BYTES:
            raise ValidationError(
                f"Image too large. Max {ai_settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB."
            )
        return True

    @staticmethod
    def preprocess_image(image_bytes: bytes, max_size: int = None) -> Image.Image:
        """Decode, convert to RGB and shrink so the longest side fits max_size."""
        max_size = max_size or ai_settings.MAX_IMAGE_SIZE

        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.error(f"Image decoding failed: {e}")
            raise ValidationError(
                "Invalid image file",
                suggestion="Please upload a clear JPEG, PNG or WEBP photo of the report.",
            )

        logger.info(f"Loaded image: {image.format}, mode={image.mode}, size={image.size}")

        if image.mode != "RGB":
            image = image.convert("RGB")

        if max(image.size) > max_size:
            ratio = max_size / max(image.size)
            new_size = (int(image.size[0] * ratio), int(image.size[1] * ratio))
            image = image.resize(new_size, Image.Resampling.LANCZOS)
            logger.info(f"Resized image to {new_size}")

        return image

    @staticmethod
    def to_png_bytes(image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
