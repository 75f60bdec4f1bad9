from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime

class FileOut(BaseModel):
    file_id: str
    filename: str
    media_type: str
    size_bytes: int
    url: str

class FileInfo(FileOut):
    metadata: Dict[str, Any] = {}
    created_at: datetime

class CompressionStats(BaseModel):
    original_size: int
    compressed_size: int
    saved_bytes: int
    reduction_percent: int
    original_size_human: str
    compressed_size_human: str

class CompressionResponse(BaseModel):
    file: FileOut
    file_type: str
    quality: int
    stats: CompressionStats

class PdfToImageResponse(BaseModel):
    total_pages: int
    pages: List[int]  # 1-based page numbers that were rendered
    images: List[FileOut]
    archive: Optional[FileOut] = None

class PdfInfoResponse(BaseModel):
    filename: str
    total_pages: int

class OcrResponse(BaseModel):
    text: str
    language: str
    page_count: int
    is_empty: bool
    file: FileOut

class ToolOut(BaseModel):
    slug: str
    name: str
    description: str
    endpoint: str
    accepted_types: List[str]
    max_files: int
    min_files: int
    max_file_size: int
    options: Dict[str, Any]
