import warnings
from io import BytesIO

import pytest
from PIL import Image
from pypdf import PdfReader

from conftest import build_image, build_noisy_jpeg, build_pdf
from filewizard.schemas.conversion import ImageToPdfOptions, PdfToImageOptions
from filewizard.services.pdf_service import PDFService, page_size_points, pdf_service


def test_merge_keeps_page_order_and_count():
    first = build_pdf(pages=2, width=300, height=300)
    second = build_pdf(pages=1, width=500, height=400)

    merged = PdfReader(BytesIO(pdf_service.merge_pdfs([first, second])))

    assert len(merged.pages) == 3
    widths = [float(page.mediabox.width) for page in merged.pages]
    assert widths == [300, 300, 500]


def test_merge_bookmarks_are_optional():
    first = build_pdf(pages=1, bookmark="Intro")
    second = build_pdf(pages=1, bookmark="Appendix")

    with_outline = PdfReader(BytesIO(pdf_service.merge_pdfs([first, second], include_bookmarks=True)))
    without_outline = PdfReader(BytesIO(pdf_service.merge_pdfs([first, second], include_bookmarks=False)))

    titles = [item.title for item in with_outline.outline]
    assert titles == ["Intro", "Appendix"]
    assert without_outline.outline == []


def test_merge_requires_two_documents():
    with pytest.raises(ValueError, match="at least 2"):
        pdf_service.merge_pdfs([build_pdf()])


def test_merge_reports_the_broken_file():
    with pytest.raises(ValueError, match='"broken.pdf"'):
        pdf_service.merge_pdfs([build_pdf(), b"not a pdf at all"], names=["ok.pdf", "broken.pdf"])


@pytest.mark.parametrize(
    "spec, total, expected",
    [
        ("1,3,5-7", 10, [0, 2, 4, 5, 6]),
        ("2-4, 3", 10, [1, 2, 3]),
        ("0,11,4", 10, [3]),
        ("", 5, []),
        ("8-12", 9, [7, 8]),
        ("1-999999999", 3, [0, 1, 2]),
        ("2-999999999999, 1", 3, [1, 2, 0]),
    ],
)
def test_parse_page_range(spec, total, expected):
    assert PDFService.parse_page_range(spec, total) == expected


@pytest.mark.parametrize("spec", ["a", "1-b", "5-3", "1--2"])
def test_parse_page_range_rejects_malformed_tokens(spec):
    with pytest.raises(ValueError, match="Invalid page range"):
        PDFService.parse_page_range(spec, 10)


def test_count_pages(pdf_bytes):
    assert pdf_service.count_pages(pdf_bytes) == 3


def test_page_size_points_swaps_for_landscape():
    width, height = page_size_points("a4", "portrait")
    assert width == pytest.approx(595.28, abs=0.01)
    assert height == pytest.approx(841.89, abs=0.01)
    assert page_size_points("a4", "landscape") == (height, width)


def test_images_to_pdf_one_page_per_image():
    images = [build_image("PNG"), build_image("JPEG", size=(60, 200)), build_image("PNG", mode="RGBA", color=(0, 0, 0, 0))]
    options = ImageToPdfOptions(page_size="letter", orientation="landscape", margin="small")

    reader = PdfReader(BytesIO(pdf_service.images_to_pdf(images, options)))

    assert len(reader.pages) == 3
    for page in reader.pages:
        assert float(page.mediabox.width) == pytest.approx(792, abs=0.1)
        assert float(page.mediabox.height) == pytest.approx(612, abs=0.1)


def test_images_to_pdf_quality_changes_output_size():
    noisy = build_noisy_jpeg()
    low = pdf_service.images_to_pdf([noisy], ImageToPdfOptions(image_quality=10))
    high = pdf_service.images_to_pdf([noisy], ImageToPdfOptions(image_quality=95))
    assert len(low) < len(high)


def test_images_to_pdf_rejects_non_images():
    with pytest.raises(ValueError, match='"notes.txt" is not a valid image'):
        pdf_service.images_to_pdf([b"hello"], ImageToPdfOptions(), names=["notes.txt"])


def test_pdf_to_images_custom_pages(pdf_bytes):
    options = PdfToImageOptions(image_format="jpg", image_quality=50, pages="custom", page_range="1,3")

    total, rendered = pdf_service.pdf_to_images(pdf_bytes, options)

    assert total == 3
    assert [index for index, _ in rendered] == [0, 2]
    img = Image.open(BytesIO(rendered[0][1]))
    assert img.format == "JPEG"
    # quality 50 renders at scale 1: one pixel per point
    assert img.size == (612, 792)


def test_pdf_to_images_first_page_as_webp(pdf_bytes):
    total, rendered = pdf_service.pdf_to_images(pdf_bytes, PdfToImageOptions(image_format="webp", pages="first"))
    assert total == 3
    assert len(rendered) == 1
    assert Image.open(BytesIO(rendered[0][1])).format == "WEBP"


def test_pdf_to_images_without_valid_pages(pdf_bytes):
    options = PdfToImageOptions(pages="custom", page_range="7-9")
    with pytest.raises(ValueError, match="No valid pages selected"):
        pdf_service.pdf_to_images(pdf_bytes, options)


def test_compress_pdf_shrinks_embedded_images():
    source = pdf_service.images_to_pdf([build_noisy_jpeg()], ImageToPdfOptions(image_quality=95))
    compressed = pdf_service.compress_pdf(source, quality=25)
    assert len(compressed) < len(source)
    assert len(PdfReader(BytesIO(compressed)).pages) == 1


def test_pages_to_zip():
    import zipfile

    archive = pdf_service.pages_to_zip([("a_page1.png", b"one"), ("a_page2.png", b"two")])
    with zipfile.ZipFile(BytesIO(archive)) as zipf:
        assert zipf.namelist() == ["a_page1.png", "a_page2.png"]
        assert zipf.read("a_page2.png") == b"two"


def test_compress_pdf_returns_input_when_nothing_shrinks():
    source = build_pdf(pages=2)
    compressed = pdf_service.compress_pdf(source, quality=25)
    assert len(compressed) <= len(source)
    assert len(PdfReader(BytesIO(compressed)).pages) == 2


def test_merge_compression_reencodes_images():
    scans = [
        pdf_service.images_to_pdf([build_noisy_jpeg()], ImageToPdfOptions(image_quality=95))
        for _ in range(2)
    ]
    plain = pdf_service.merge_pdfs(scans, optimize=False, compression="none")
    compressed = pdf_service.merge_pdfs(scans, optimize=False, compression="high")

    assert len(compressed) < len(plain)
    assert len(PdfReader(BytesIO(compressed)).pages) == 2


def test_optimize_uses_current_pypdf_arguments():
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        pdf_service.merge_pdfs([build_pdf(), build_pdf()], optimize=True)
    assert not [w for w in caught if "remove_orphans" in str(w.message)]
