from fastapi import APIRouter, HTTPException, Response
from datetime import datetime, timezone
from urllib.parse import quote

from filewizard.schemas.file import FileInfo
from filewizard.services.storage_service import storage_service

router = APIRouter(prefix="/files", tags=["Results"])

def _get_or_404(file_id: str):
    stored = storage_service.download_file(file_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="File not found")
    return stored

@router.get("/{file_id}", response_class=Response)
def download_file(file_id: str):
    stored = _get_or_404(file_id)
    return Response(
        content=stored.content,
        media_type=stored.media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(stored.filename)}"}
    )

@router.get("/{file_id}/info", response_model=FileInfo)
def file_info(file_id: str):
    stored = _get_or_404(file_id)
    return FileInfo(
        file_id=stored.object_name,
        filename=stored.filename,
        media_type=stored.media_type,
        size_bytes=stored.size_bytes,
        url=storage_service.get_download_url(stored.object_name),
        metadata=stored.metadata,
        created_at=datetime.fromtimestamp(stored.created_at, tz=timezone.utc),
    )

@router.delete("/{file_id}", status_code=200)
def delete_file(file_id: str):
    if not storage_service.delete_file(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    return {"status": "success"}
