from fastapi import HTTPException, UploadFile
from pydantic import BaseModel, ValidationError
from typing import List, Optional, Type, TypeVar

from filewizard.core.uploads import TOOL_RULES, UploadedFile, UploadRejected, validate_uploads
from filewizard.schemas.file import FileOut
from filewizard.services.storage_service import storage_service

OptionsT = TypeVar("OptionsT", bound=BaseModel)


async def read_uploads(tool: str, files: List[UploadFile]) -> List[UploadedFile]:
    """Read the request's files and check them against the tool's upload rule."""
    rule = TOOL_RULES[tool]
    uploads = []
    for file in files:
        # stop reading as soon as the size limit is crossed
        content = await file.read(rule.max_file_size + 1)
        uploads.append(UploadedFile(
            filename=file.filename or "upload",
            content_type=file.content_type or "",
            content=content,
        ))
    try:
        validate_uploads(rule, uploads)
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    return uploads


def parse_options(model: Type[OptionsT], raw: Optional[str]) -> OptionsT:
    """Parse the JSON ``options`` form field; an empty field means all defaults."""
    try:
        if not raw or not raw.strip():
            return model()
        return model.model_validate_json(raw)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))


def store_result(filename: str, content: bytes, media_type: str, metadata: dict = None) -> FileOut:
    object_name = storage_service.upload_file(
        filename=filename,
        file_content=content,
        media_type=media_type,
        metadata=metadata,
    )
    return FileOut(
        file_id=object_name,
        filename=filename,
        media_type=media_type,
        size_bytes=len(content),
        url=storage_service.get_download_url(object_name),
    )


def stem(filename: str) -> str:
    return filename.rsplit('.', 1)[0] if '.' in filename else filename
