from fastapi import APIRouter
from typing import List

from filewizard.core.config import settings
from filewizard.core.uploads import TOOL_RULES
from filewizard.schemas.conversion import (
    CompressionOptions,
    ImageToPdfOptions,
    MergeOptions,
    OcrOptions,
    PdfToImageOptions,
    WordToPdfOptions,
)
from filewizard.schemas.file import ToolOut

router = APIRouter(prefix="/tools", tags=["Tools"])

TOOLS = [
    {
        "slug": "pdf-to-image",
        "name": "PDF to Image",
        "description": "Render PDF pages as PNG, JPG or WebP images.",
        "endpoint": "/pdf/to-image",
        "options": PdfToImageOptions,
    },
    {
        "slug": "image-to-pdf",
        "name": "Image to PDF",
        "description": "Combine images into one PDF document.",
        "endpoint": "/pdf/from-images",
        "options": ImageToPdfOptions,
    },
    {
        "slug": "word-to-pdf",
        "name": "Word to PDF",
        "description": "Convert DOCX documents to PDF.",
        "endpoint": "/word/to-pdf",
        "options": WordToPdfOptions,
    },
    {
        "slug": "merge-pdf",
        "name": "Merge PDFs",
        "description": "Join two or more PDFs in the order given.",
        "endpoint": "/pdf/merge",
        "options": MergeOptions,
    },
    {
        "slug": "compress",
        "name": "Compress Files",
        "description": "Shrink images and PDFs.",
        "endpoint": "/compress",
        "options": CompressionOptions,
    },
    {
        "slug": "ocr",
        "name": "OCR Text Recognition",
        "description": "Extract text from scanned images and PDFs.",
        "endpoint": "/ocr",
        "options": OcrOptions,
    },
]

@router.get("", response_model=List[ToolOut])
def list_tools():
    tools = []
    for tool in TOOLS:
        rule = TOOL_RULES[tool["slug"]]
        tools.append(ToolOut(
            slug=tool["slug"],
            name=tool["name"],
            description=tool["description"],
            endpoint=f"{settings.API_V1_STR}{tool['endpoint']}",
            accepted_types=rule.accepted_types,
            max_files=rule.max_files,
            min_files=rule.min_files,
            max_file_size=rule.max_file_size,
            options=tool["options"]().model_dump(),
        ))
    return tools
