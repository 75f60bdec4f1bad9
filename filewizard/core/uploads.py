"""Upload rules for each tool.

A rule describes what a tool accepts: the allow-list of extensions and MIME
types, how many files, and how large each may be. ``validate_uploads`` applies
a rule to the files of one request and raises ``UploadRejected`` with a
message that can be shown to the user as is.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from filewizard.core.config import settings


class UploadRejected(ValueError):
    """Raised when uploaded files violate a tool's upload rule."""


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class UploadRule:
    accepted_types: List[str]
    description: str
    max_files: int = 10
    max_file_size: int = 50 * 1024 * 1024
    multiple: bool = True
    min_files: int = 1


def format_file_size(num_bytes: float) -> str:
    if num_bytes <= 0:
        return "0 Bytes"

    k = 1024
    sizes = ["Bytes", "KB", "MB", "GB"]
    i = 0
    value = float(num_bytes)
    while value >= k and i < len(sizes) - 1:
        value /= k
        i += 1
    # 1.50 -> "1.5", 2.00 -> "2"
    return f"{round(value, 2):g} {sizes[i]}"


def get_file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1]


def is_valid_file_type(filename: Optional[str], content_type: Optional[str], accepted: Sequence[str]) -> bool:
    extension = get_file_extension(filename).lower()
    mime = (content_type or "").lower()

    for accepted_type in accepted:
        if accepted_type.startswith("."):
            if extension == accepted_type[1:].lower():
                return True
        elif mime and accepted_type.lower() in mime:
            return True
    return False


def validate_uploads(rule: UploadRule, files: Sequence[UploadedFile]) -> None:
    if not files:
        raise UploadRejected("Please select a file first")

    if not rule.multiple and len(files) > 1:
        raise UploadRejected("Please select only one file")

    if len(files) > rule.max_files:
        raise UploadRejected(f"You can upload at most {rule.max_files} files")

    if len(files) < rule.min_files:
        raise UploadRejected(f"Please select at least {rule.min_files} {rule.description} files")

    for upload in files:
        if upload.size > rule.max_file_size:
            raise UploadRejected(
                f"{upload.filename} is too large: files must be smaller than {format_file_size(rule.max_file_size)}"
            )
        if upload.size == 0:
            raise UploadRejected(f"{upload.filename} is empty")
        if not is_valid_file_type(upload.filename, upload.content_type, rule.accepted_types):
            raise UploadRejected(f"{upload.filename}: only {rule.description} files are supported")


IMAGE_TYPES = [
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp",
    "image/jpeg", "image/png", "image/gif", "image/webp", "image/bmp",
]
PDF_TYPES = [".pdf", "application/pdf"]
WORD_TYPES = [
    ".docx", ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
]


def _rule(accepted_types, description, **kwargs) -> UploadRule:
    kwargs.setdefault("max_files", settings.MAX_FILES)
    kwargs.setdefault("max_file_size", settings.MAX_UPLOAD_SIZE)
    return UploadRule(accepted_types=list(accepted_types), description=description, **kwargs)


TOOL_RULES: Dict[str, UploadRule] = {
    "pdf-to-image": _rule(PDF_TYPES, "PDF", max_files=1, multiple=False),
    "image-to-pdf": _rule(IMAGE_TYPES, "image (JPG, PNG, etc.)"),
    "merge-pdf": _rule(PDF_TYPES, "PDF", min_files=2),
    "word-to-pdf": _rule(WORD_TYPES, "Word (DOCX)", max_files=1, multiple=False),
    "compress": _rule(IMAGE_TYPES + PDF_TYPES, "image or PDF", max_files=1, multiple=False),
    "ocr": _rule(IMAGE_TYPES + [".tiff", ".tif", "image/tiff"] + PDF_TYPES, "image or PDF", max_files=1, multiple=False),
}
