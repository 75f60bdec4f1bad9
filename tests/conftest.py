"""Shared fixtures: sample PDFs, images and Word documents built on the fly."""

from __future__ import annotations

from io import BytesIO

import pytest
from docx import Document
from docx.shared import Inches
from fastapi.testclient import TestClient
from PIL import Image
from pypdf import PdfWriter

from filewizard.main import app
from filewizard.services.storage_service import storage_service


@pytest.fixture(autouse=True)
def _empty_result_store():
    storage_service.clear()
    yield
    storage_service.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def build_pdf(pages: int = 1, bookmark: str | None = None, width: float = 612, height: float = 792) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    if bookmark:
        writer.add_outline_item(bookmark, 0)
    output = BytesIO()
    writer.write(output)
    return output.getvalue()


def build_image(fmt: str = "PNG", size=(120, 80), color=(200, 30, 30), mode: str = "RGB") -> bytes:
    img = Image.new(mode, size, color)
    output = BytesIO()
    img.save(output, format=fmt)
    return output.getvalue()


def build_noisy_jpeg(size=(800, 600), quality: int = 95) -> bytes:
    img = Image.effect_noise(size, 64).convert("RGB")
    output = BytesIO()
    img.save(output, format="JPEG", quality=quality)
    return output.getvalue()


def build_docx(with_picture: bool = True) -> bytes:
    document = Document()
    document.core_properties.title = "Quarterly Report"
    document.add_heading("Quarterly Report", level=1)
    paragraph = document.add_paragraph("Revenue grew ")
    paragraph.add_run("strongly").bold = True
    paragraph.add_run(" this quarter.")
    document.add_paragraph("First point", style="List Bullet")

    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Region"
    table.cell(0, 1).text = "Sales"
    table.cell(1, 0).text = "North"
    table.cell(1, 1).text = "42"

    if with_picture:
        document.add_picture(BytesIO(build_image("PNG", size=(300, 200))), width=Inches(2))

    output = BytesIO()
    document.save(output)
    return output.getvalue()


@pytest.fixture
def pdf_bytes() -> bytes:
    return build_pdf(pages=3)


@pytest.fixture
def png_bytes() -> bytes:
    return build_image("PNG")


@pytest.fixture
def docx_bytes() -> bytes:
    return build_docx()
