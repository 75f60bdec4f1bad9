import cv2
import numpy as np
import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError
from io import BytesIO
from dataclasses import dataclass
from typing import List
import logging

from filewizard.core.config import settings
from filewizard.schemas.conversion import OcrOptions
from filewizard.services.pdf_service import pdf_service

logger = logging.getLogger(__name__)

if settings.TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD


class OcrUnavailable(RuntimeError):
    """The Tesseract engine (or a language pack) is not installed."""


@dataclass
class OcrResult:
    text: str
    language: str
    page_count: int

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


class OCRService:
    LANGUAGES = {
        'english': 'eng',
        'hindi': 'hin',
        'multi': 'eng+hin',
    }
    PDF_RENDER_SCALE = 2.0  # ~144 dpi

    @staticmethod
    def enhance(img: np.ndarray) -> np.ndarray:
        """Grayscale then Otsu binarization."""
        if img.ndim == 3:
            img = cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)
        _, binary = cv2.threshold(img, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary

    @staticmethod
    def correct_orientation(img: Image.Image) -> Image.Image:
        try:
            osd = pytesseract.image_to_osd(img, output_type=pytesseract.Output.DICT)
        except pytesseract.TesseractError as exc:
            # OSD needs enough text to decide; leave the page as it is
            logger.warning("Orientation detection failed: %s", exc)
            return img
        rotate = int(osd.get('rotate', 0))
        if rotate:
            logger.info("Rotating page by %d degrees", rotate)
            img = img.rotate(-rotate, expand=True)
        return img

    @staticmethod
    def _load_pages(content: bytes, is_pdf: bool) -> List[Image.Image]:
        if is_pdf:
            page_count = pdf_service.count_pages(content)
            return pdf_service.render_pages(content, range(page_count), OCRService.PDF_RENDER_SCALE)
        try:
            img = Image.open(BytesIO(content))
            img = ImageOps.exif_transpose(img)
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Invalid image") from exc
        return [img.convert('RGB')]

    @staticmethod
    def recognize(img: Image.Image, language: str, options: OcrOptions) -> str:
        if options.detect_orientation:
            img = OCRService.correct_orientation(img)
        if options.enhance_image:
            img = Image.fromarray(OCRService.enhance(np.array(img.convert('RGB'))))
        return pytesseract.image_to_string(img, lang=language).strip()

    @staticmethod
    def extract_text(content: bytes, mime_type: str, options: OcrOptions, filename: str = "") -> OcrResult:
        """Extract text from an image, or from every page of a PDF."""
        is_pdf = mime_type == 'application/pdf' or filename.lower().endswith('.pdf')
        language = OCRService.LANGUAGES[options.language]
        pages = OCRService._load_pages(content, is_pdf)

        texts = []
        try:
            for img in pages:
                texts.append(OCRService.recognize(img, language, options))
        except pytesseract.TesseractNotFoundError as exc:
            raise OcrUnavailable("OCR engine is not installed on the server") from exc
        except pytesseract.TesseractError as exc:
            if 'language' in str(exc).lower() or 'traineddata' in str(exc).lower():
                raise OcrUnavailable(f"OCR language pack '{language}' is not installed") from exc
            raise

        text = "\n\n".join(t for t in texts if t)
        logger.info("OCR (%s) read %d characters from %d page(s)", language, len(text), len(pages))
        return OcrResult(text=text, language=options.language, page_count=len(pages))

ocr_service = OCRService()
