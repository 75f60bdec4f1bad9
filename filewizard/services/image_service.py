from PIL import Image, ImageOps, UnidentifiedImageError
from io import BytesIO
from typing import Any, Dict, Tuple
import logging

from filewizard.core.uploads import format_file_size

logger = logging.getLogger(__name__)

class ImageService:
    # Target quality per compression level; the ratios match the expected size reduction.
    LEVEL_QUALITY = {
        'low': 80,
        'medium': 60,
        'high': 40,
        'extreme': 25,
    }

    # Formats re-encoded as themselves; anything else is written as PNG.
    OUTPUT_FORMATS = {
        'JPEG': ('JPEG', 'image/jpeg', 'jpg'),
        'PNG': ('PNG', 'image/png', 'png'),
        'WEBP': ('WEBP', 'image/webp', 'webp'),
    }

    MAX_WIDTH = 1920
    MAX_HEIGHT = 1080

    @staticmethod
    def level_to_quality(level: str) -> int:
        return ImageService.LEVEL_QUALITY[level]

    @staticmethod
    def _load(image_bytes: bytes) -> Image.Image:
        try:
            img = Image.open(BytesIO(image_bytes))
            img.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Invalid image") from exc
        return img

    @staticmethod
    def resize_to_fit(img: Image.Image, max_width: int, max_height: int) -> Image.Image:
        """Shrink with aspect ratio preservation; never enlarges."""
        width, height = img.size
        if width > max_width:
            height = max_width / width * height
            width = max_width
        if height > max_height:
            width = max_height / height * width
            height = max_height
        new_size = (max(1, round(width)), max(1, round(height)))
        if new_size == img.size:
            return img
        return img.resize(new_size, Image.Resampling.LANCZOS)

    @staticmethod
    def compress_image(
        image_bytes: bytes,
        quality: int,
        max_width: int = MAX_WIDTH,
        max_height: int = MAX_HEIGHT,
    ) -> Tuple[bytes, str, str]:
        """Re-encode an image at ``quality``.

        Returns the encoded bytes, the media type and the file extension of
        the output format.
        """
        img = ImageService._load(image_bytes)
        source_format = img.format
        save_format, media_type, extension = ImageService.OUTPUT_FORMATS.get(
            source_format, ImageService.OUTPUT_FORMATS['PNG']
        )

        img = ImageOps.exif_transpose(img)
        img = ImageService.resize_to_fit(img, max_width, max_height)

        output = BytesIO()
        if save_format == 'JPEG':
            if img.mode not in ('RGB', 'L'):
                img = img.convert('RGB')
            img.save(output, format='JPEG', quality=quality, optimize=True)
        elif save_format == 'WEBP':
            img.save(output, format='WEBP', quality=quality)
        else:
            # PNG has no quality knob: trade palette size for bytes instead
            if quality < 100:
                colors = max(16, quality * 256 // 100)
                if img.mode not in ('RGB', 'RGBA'):
                    img = img.convert('RGBA' if 'transparency' in img.info or img.mode in ('LA', 'PA') else 'RGB')
                img = img.quantize(colors=colors, method=Image.Quantize.FASTOCTREE)
            img.save(output, format='PNG', optimize=True)

        result = output.getvalue()
        logger.info(
            "Compressed %s image %dx%d at quality %d: %d -> %d bytes",
            source_format, img.width, img.height, quality, len(image_bytes), len(result),
        )
        return result, media_type, extension

    @staticmethod
    def compression_stats(original_size: int, compressed_size: int) -> Dict[str, Any]:
        saved = original_size - compressed_size
        reduction = round(saved / original_size * 100) if original_size else 0
        return {
            'original_size': original_size,
            'compressed_size': compressed_size,
            'saved_bytes': saved,
            'reduction_percent': reduction,
            'original_size_human': format_file_size(original_size),
            'compressed_size_human': format_file_size(compressed_size),
        }

image_service = ImageService()
