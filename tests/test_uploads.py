import pytest

from filewizard.core.uploads import (
    TOOL_RULES,
    UploadedFile,
    UploadRejected,
    UploadRule,
    format_file_size,
    get_file_extension,
    is_valid_file_type,
    validate_uploads,
)


@pytest.mark.parametrize(
    "num_bytes, expected",
    [
        (0, "0 Bytes"),
        (500, "500 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (50 * 1024 * 1024, "50 MB"),
        (3 * 1024 ** 3, "3 GB"),
    ],
)
def test_format_file_size(num_bytes, expected):
    assert format_file_size(num_bytes) == expected


def test_get_file_extension():
    assert get_file_extension("report.final.PDF") == "PDF"
    assert get_file_extension("README") == ""
    assert get_file_extension("") == ""


def test_allow_list_matches_extension_or_mime_fragment():
    accepted = [".pdf", "image/"]
    assert is_valid_file_type("scan.PDF", "", accepted)
    assert is_valid_file_type("photo.bin", "image/jpeg", accepted)
    assert not is_valid_file_type("notes.txt", "text/plain", accepted)
    assert not is_valid_file_type("archive.pdf.zip", "application/zip", accepted)


def _upload(name="a.pdf", content_type="application/pdf", content=b"%PDF-1.4"):
    return UploadedFile(filename=name, content_type=content_type, content=content)


def test_merge_rule_needs_two_files():
    with pytest.raises(UploadRejected, match="at least 2"):
        validate_uploads(TOOL_RULES["merge-pdf"], [_upload()])
    validate_uploads(TOOL_RULES["merge-pdf"], [_upload(), _upload("b.pdf")])


def test_single_file_tools_reject_several_files():
    with pytest.raises(UploadRejected, match="only one"):
        validate_uploads(TOOL_RULES["pdf-to-image"], [_upload(), _upload("b.pdf")])


def test_rejects_disallowed_type():
    with pytest.raises(UploadRejected, match="only PDF files"):
        validate_uploads(TOOL_RULES["merge-pdf"], [_upload(), _upload("notes.txt", "text/plain", b"hi")])


def test_rejects_oversized_and_empty_files():
    rule = UploadRule(accepted_types=[".pdf"], description="PDF", max_file_size=4)
    with pytest.raises(UploadRejected, match="too large"):
        validate_uploads(rule, [_upload(content=b"12345")])
    with pytest.raises(UploadRejected, match="empty"):
        validate_uploads(rule, [_upload(content=b"")])


def test_rejects_too_many_files_and_none():
    rule = UploadRule(accepted_types=[".pdf"], description="PDF", max_files=2)
    with pytest.raises(UploadRejected, match="at most 2"):
        validate_uploads(rule, [_upload(), _upload(), _upload()])
    with pytest.raises(UploadRejected, match="select a file"):
        validate_uploads(rule, [])


def test_ocr_accepts_tiff_but_image_to_pdf_does_not():
    tiff = _upload("scan.tiff", "image/tiff", b"II*\x00")
    validate_uploads(TOOL_RULES["ocr"], [tiff])
    assert not is_valid_file_type("scan.tiff", "image/tiff", TOOL_RULES["image-to-pdf"].accepted_types)
