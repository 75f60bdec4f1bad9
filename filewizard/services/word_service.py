from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.opc.exceptions import PackageNotFoundError
from docx.table import Table as DocxTable
from docx.text.hyperlink import Hyperlink
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4, A5, LEGAL, LETTER, landscape, portrait
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from xml.sax.saxutils import escape
from io import BytesIO
from typing import Dict, List, Optional, Tuple
import logging
import zipfile

from filewizard.schemas.conversion import WordToPdfOptions
from filewizard.services.pdf_service import pdf_service

logger = logging.getLogger(__name__)

OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

class WordService:
    PAGE_SIZES = {'a4': A4, 'a5': A5, 'letter': LETTER, 'legal': LEGAL}
    IMAGE_QUALITY = {'high': 90, 'medium': 75, 'low': 50}
    HEADING_STYLES = {
        'Title': 'Title',
        'Heading 1': 'Heading1',
        'Heading 2': 'Heading2',
        'Heading 3': 'Heading3',
        'Heading 4': 'Heading4',
        'Heading 5': 'Heading5',
        'Heading 6': 'Heading6',
    }
    ALIGNMENTS = {
        WD_ALIGN_PARAGRAPH.CENTER: TA_CENTER,
        WD_ALIGN_PARAGRAPH.RIGHT: TA_RIGHT,
        WD_ALIGN_PARAGRAPH.JUSTIFY: TA_JUSTIFY,
    }
    MARGIN = 20 * mm

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._style_cache: Dict[Tuple[str, int], ParagraphStyle] = {}

    def _style(self, base_name: str, alignment: int) -> ParagraphStyle:
        key = (base_name, alignment)
        if key not in self._style_cache:
            base = self.styles[base_name]
            self._style_cache[key] = ParagraphStyle(
                name=f"{base_name}-{alignment}", parent=base, alignment=alignment
            )
        return self._style_cache[key]

    @staticmethod
    def _run_markup(run) -> str:
        text = escape(run.text).replace("\n", "<br/>").replace("\t", "&nbsp;&nbsp;&nbsp;&nbsp;")
        if not text:
            return ""
        if run.bold:
            text = f"<b>{text}</b>"
        if run.italic:
            text = f"<i>{text}</i>"
        if run.underline:
            text = f"<u>{text}</u>"
        return text

    @staticmethod
    def _image(blob: bytes, quality: int, max_width: float, max_height: float) -> Image:
        jpeg = pdf_service.to_jpeg(blob, quality, "embedded image")
        px_width, px_height = ImageReader(BytesIO(jpeg)).getSize()
        # pixels at 96 dpi
        width, height = px_width * 72 / 96, px_height * 72 / 96
        scale = min(1.0, max_width / width, max_height / height)
        return Image(BytesIO(jpeg), width=width * scale, height=height * scale)

    @staticmethod
    def _runs(paragraph) -> List:
        # hyperlinked text lives in w:hyperlink, outside paragraph.runs
        runs = []
        for item in paragraph.iter_inner_content():
            if isinstance(item, Hyperlink):
                runs.extend(item.runs)
            else:
                runs.append(item)
        return runs

    def _paragraph_flowables(self, paragraph, quality: int, frame: Tuple[float, float], number: Optional[int] = None) -> List:
        flowables = []
        style_name = paragraph.style.name if paragraph.style is not None else ''
        base = self.HEADING_STYLES.get(style_name, 'BodyText')
        alignment = self.ALIGNMENTS.get(paragraph.alignment, TA_LEFT)
        runs = self._runs(paragraph)

        markup = "".join(self._run_markup(run) for run in runs)
        if markup.strip():
            bullet = None
            if number is not None:
                bullet = f"{number}."
            elif style_name.startswith('List Bullet'):
                bullet = '•'
            flowables.append(Paragraph(markup, self._style(base, alignment), bulletText=bullet))

        for run in runs:
            for rel_id in run._element.xpath('.//a:blip/@r:embed'):
                part = paragraph.part.related_parts.get(rel_id)
                if part is None:
                    continue
                try:
                    flowables.append(self._image(part.blob, quality, *frame))
                except ValueError as exc:
                    logger.warning("Skipping picture %s: %s", rel_id, exc)

        if not flowables:
            flowables.append(Spacer(1, 6))
        return flowables

    def _table_flowable(self, table: DocxTable, width: float) -> Table:
        cell_style = self.styles['BodyText']
        data = [
            [Paragraph(escape(cell.text).replace("\n", "<br/>"), cell_style) for cell in row.cells]
            for row in table.rows
        ]
        columns = max((len(row) for row in data), default=1)
        for row in data:
            row.extend([""] * (columns - len(row)))
        flowable = Table(data, colWidths=[width / columns] * columns)
        flowable.setStyle(TableStyle([
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        return flowable

    @staticmethod
    def _open(docx_bytes: bytes) -> Document:
        if docx_bytes.startswith(OLE_MAGIC):
            raise ValueError("Legacy .doc files are not supported: please save the document as .docx")
        try:
            return Document(BytesIO(docx_bytes))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as exc:
            raise ValueError("The file is not a valid Word document") from exc

    def docx_to_pdf(self, docx_bytes: bytes, options: WordToPdfOptions) -> bytes:
        """Render paragraphs, tables and inline pictures of a DOCX into a PDF."""
        document = self._open(docx_bytes)

        pagesize = self.PAGE_SIZES[options.page_size]
        pagesize = landscape(pagesize) if options.orientation == 'landscape' else portrait(pagesize)
        quality = self.IMAGE_QUALITY[options.quality]

        output = BytesIO()
        pdf = SimpleDocTemplate(
            output,
            pagesize=pagesize,
            leftMargin=self.MARGIN,
            rightMargin=self.MARGIN,
            topMargin=self.MARGIN,
            bottomMargin=self.MARGIN,
            title=document.core_properties.title or "",
            author=document.core_properties.author or "",
            pageCompression=1,
        )
        frame = (pdf.width, pdf.height * 0.9)

        story = []
        number = 0
        for block in document.iter_inner_content():
            if isinstance(block, DocxTable):
                number = 0
                story.append(self._table_flowable(block, pdf.width))
                story.append(Spacer(1, 6))
                continue
            style_name = block.style.name if block.style is not None else ''
            # consecutive "List Number" paragraphs share one sequence
            number = number + 1 if style_name.startswith('List Number') else 0
            story.extend(self._paragraph_flowables(block, quality, frame, number or None))
        if not story:
            story.append(Spacer(1, 1))

        pdf.build(story)
        result = output.getvalue()
        logger.info("Converted Word document (%d blocks) to PDF: %d bytes", len(story), len(result))
        return result

word_service = WordService()
