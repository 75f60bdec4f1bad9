from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from PIL import Image, ImageOps, UnidentifiedImageError
from io import BytesIO
import img2pdf
import fitz  # PyMuPDF for rasterization
import logging
import zipfile
from typing import List, Optional, Sequence, Tuple

from filewizard.schemas.conversion import ImageToPdfOptions, PdfToImageOptions

logger = logging.getLogger(__name__)

# width x height in millimetres, portrait
PAGE_SIZES_MM = {
    "a4": (210.0, 297.0),
    "a5": (148.0, 210.0),
    "letter": (215.9, 279.4),
    "legal": (215.9, 355.6),
}

MERGE_COMPRESSION_QUALITY = {"low": 85, "medium": 70, "high": 50}

IMAGE_SAVE_FORMATS = {"png": "PNG", "jpg": "JPEG", "webp": "WEBP"}
MIN_RENDER_SCALE = 0.1


def page_size_points(page_size: str, orientation: str) -> Tuple[float, float]:
    width, height = PAGE_SIZES_MM[page_size]
    if orientation == "landscape":
        width, height = height, width
    return img2pdf.mm_to_pt(width), img2pdf.mm_to_pt(height)


class PDFService:
    @staticmethod
    def _open(pdf_content: bytes, name: str) -> PdfReader:
        try:
            reader = PdfReader(BytesIO(pdf_content))
            encrypted = reader.is_encrypted
            # force parsing of the page tree so broken files fail here
            if not encrypted and len(reader.pages) == 0:
                raise ValueError("no pages")
        except (PdfReadError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f'File "{name}" could not be read as a PDF') from exc
        if encrypted:
            raise ValueError(f'File "{name}" is password protected')
        return reader

    @staticmethod
    def _reencode_images(writer: PdfWriter, quality: int) -> int:
        """Re-encode embedded raster images as JPEG at ``quality``."""
        replaced = 0
        for page in writer.pages:
            for image_file in page.images:
                image = image_file.image
                if image is None or image.mode not in ("RGB", "L"):
                    continue
                try:
                    image_file.replace(image, quality=quality)
                    replaced += 1
                except (OSError, ValueError) as exc:
                    logger.warning("Skipping image %s: %s", image_file.name, exc)
        return replaced

    @staticmethod
    def _optimize(writer: PdfWriter):
        for page in writer.pages:
            page.compress_content_streams()
        writer.compress_identical_objects(remove_identicals=True)

    @staticmethod
    def _write(writer: PdfWriter) -> bytes:
        output = BytesIO()
        writer.write(output)
        output.seek(0)
        return output.read()

    @staticmethod
    def merge_pdfs(
        pdf_files: List[bytes],
        names: Optional[Sequence[str]] = None,
        include_bookmarks: bool = True,
        optimize: bool = True,
        compression: str = "none",
    ) -> bytes:
        """Merge multiple PDF files into one, pages in the order given."""
        if len(pdf_files) < 2:
            raise ValueError("Please select at least 2 PDF files")
        names = list(names) if names else [f"file {i + 1}" for i in range(len(pdf_files))]

        merger = PdfWriter()
        for pdf_content, name in zip(pdf_files, names):
            reader = PDFService._open(pdf_content, name)
            merger.append(reader, import_outline=include_bookmarks)

        if compression in MERGE_COMPRESSION_QUALITY:
            PDFService._reencode_images(merger, MERGE_COMPRESSION_QUALITY[compression])
        if optimize:
            PDFService._optimize(merger)

        result = PDFService._write(merger)
        logger.info("Merged %d PDFs into %d pages (%d bytes)", len(pdf_files), len(merger.pages), len(result))
        return result

    @staticmethod
    def count_pages(pdf_content: bytes, name: str = "document.pdf") -> int:
        return len(PDFService._open(pdf_content, name).pages)

    @staticmethod
    def compress_pdf(pdf_content: bytes, quality: int, name: str = "document.pdf") -> bytes:
        """Recompress images and streams; never returns something larger than the input."""
        reader = PDFService._open(pdf_content, name)
        writer = PdfWriter(clone_from=reader)
        replaced = PDFService._reencode_images(writer, quality)
        PDFService._optimize(writer)
        result = PDFService._write(writer)
        logger.info("Compressed %s: %d -> %d bytes (%d images re-encoded)", name, len(pdf_content), len(result), replaced)
        if len(result) >= len(pdf_content):
            return pdf_content
        return result

    @staticmethod
    def parse_page_range(spec: str, total_pages: int) -> List[int]:
        """Parse "1,3,5-7" into 0-based page indices, dropping pages outside the document."""
        pages: List[int] = []
        seen = set()
        for token in (spec or "").split(","):
            token = token.strip()
            if not token:
                continue
            try:
                if "-" in token:
                    start_text, end_text = token.split("-", 1)
                    start, end = int(start_text), int(end_text)
                    if start > end:
                        raise ValueError
                else:
                    start = end = int(token)
            except ValueError:
                raise ValueError(f"Invalid page range: {token!r}") from None
            for page_number in range(max(start, 1), min(end, total_pages) + 1):
                if page_number not in seen:
                    seen.add(page_number)
                    pages.append(page_number - 1)
        return pages

    @staticmethod
    def to_jpeg(image_content: bytes, quality: int, name: str) -> bytes:
        try:
            img = Image.open(BytesIO(image_content))
            img = ImageOps.exif_transpose(img)
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError(f'File "{name}" is not a valid image') from exc

        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            img = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            img = background
        elif img.mode != "RGB":
            img = img.convert("RGB")

        output = BytesIO()
        img.save(output, format="JPEG", quality=quality)
        return output.getvalue()

    @staticmethod
    def images_to_pdf(
        images: List[bytes],
        options: ImageToPdfOptions,
        names: Optional[Sequence[str]] = None,
    ) -> bytes:
        """Lay out each image on its own page."""
        if not images:
            raise ValueError("Please select some images first")
        names = list(names) if names else [f"image {i + 1}" for i in range(len(images))]

        jpegs = [
            PDFService.to_jpeg(content, options.image_quality, name)
            for content, name in zip(images, names)
        ]

        pagesize = page_size_points(options.page_size, options.orientation)
        border = None
        if options.margin:
            margin_pt = img2pdf.mm_to_pt(options.margin)
            border = (margin_pt, margin_pt)
        fit = img2pdf.FitMode.into if options.fit_to_page else img2pdf.FitMode.shrink
        layout_fun = img2pdf.get_layout_fun(pagesize, None, border, fit, False)

        result = img2pdf.convert(jpegs, layout_fun=layout_fun)
        logger.info(
            "Converted %d images to PDF (%s %s, margin %smm, %d bytes)",
            len(images), options.page_size, options.orientation, options.margin, len(result),
        )
        return result

    @staticmethod
    def _open_document(pdf_content: bytes, name: str) -> "fitz.Document":
        try:
            doc = fitz.open(stream=pdf_content, filetype="pdf")
        except (RuntimeError, ValueError) as exc:
            raise ValueError(f'File "{name}" could not be read as a PDF') from exc
        if doc.needs_pass:
            doc.close()
            raise ValueError(f'File "{name}" is password protected')
        return doc

    @staticmethod
    def select_pages(options: PdfToImageOptions, total_pages: int) -> List[int]:
        if options.pages == "all":
            return list(range(total_pages))
        if options.pages == "first":
            return [0] if total_pages else []
        return PDFService.parse_page_range(options.page_range or "", total_pages)

    @staticmethod
    def render_pages(pdf_content: bytes, page_indices: Sequence[int], scale: float, name: str = "document.pdf") -> List[Image.Image]:
        """Rasterize the given 0-based pages to RGB Pillow images."""
        doc = PDFService._open_document(pdf_content, name)
        try:
            matrix = fitz.Matrix(max(scale, MIN_RENDER_SCALE), max(scale, MIN_RENDER_SCALE))
            rendered = []
            for index in page_indices:
                pix = doc[index].get_pixmap(matrix=matrix, alpha=False)
                rendered.append(Image.frombytes("RGB", (pix.width, pix.height), pix.samples))
            return rendered
        finally:
            doc.close()

    @staticmethod
    def pdf_to_images(pdf_content: bytes, options: PdfToImageOptions, name: str = "document.pdf") -> Tuple[int, List[Tuple[int, bytes]]]:
        """Returns the document's page count and (0-based page, encoded image) pairs."""
        doc = PDFService._open_document(pdf_content, name)
        total_pages = doc.page_count
        doc.close()

        page_indices = PDFService.select_pages(options, total_pages)
        if not page_indices:
            raise ValueError("No valid pages selected")

        save_format = IMAGE_SAVE_FORMATS[options.image_format]
        results = []
        for index, img in zip(page_indices, PDFService.render_pages(pdf_content, page_indices, options.scale, name)):
            output = BytesIO()
            if save_format == "PNG":
                img.save(output, format=save_format, optimize=True)
            else:
                img.save(output, format=save_format, quality=options.image_quality)
            results.append((index, output.getvalue()))

        logger.info("Rendered %d of %d pages from %s as %s", len(results), total_pages, name, options.image_format)
        return total_pages, results

    @staticmethod
    def pages_to_zip(entries: Sequence[Tuple[str, bytes]]) -> bytes:
        output = BytesIO()
        with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as zipf:
            for filename, content in entries:
                zipf.writestr(filename, content)
        return output.getvalue()

pdf_service = PDFService()
