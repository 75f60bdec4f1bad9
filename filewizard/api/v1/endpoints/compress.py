from fastapi import APIRouter, UploadFile, File as FileParam, Form, HTTPException
from fastapi.concurrency import run_in_threadpool
from typing import Optional
import logging

from filewizard.api.deps import parse_options, read_uploads, stem, store_result
from filewizard.schemas.conversion import CompressionOptions
from filewizard.schemas.file import CompressionResponse, CompressionStats
from filewizard.services.image_service import image_service
from filewizard.services.pdf_service import pdf_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/compress", tags=["Compression"])

@router.post("", response_model=CompressionResponse)
async def compress_file(
    file: UploadFile = FileParam(...),
    options: Optional[str] = Form(None),
):
    compression = parse_options(CompressionOptions, options)
    upload = (await read_uploads("compress", [file]))[0]

    is_pdf = upload.content_type == "application/pdf" or upload.filename.lower().endswith(".pdf")
    quality = compression.quality or image_service.level_to_quality(compression.level)

    try:
        if is_pdf:
            compressed = await run_in_threadpool(pdf_service.compress_pdf, upload.content, quality, upload.filename)
            media_type, filename = "application/pdf", f"compressed_{upload.filename}"
        else:
            compressed, media_type, extension = await run_in_threadpool(
                image_service.compress_image, upload.content, quality
            )
            if media_type == upload.content_type:
                filename = f"compressed_{upload.filename}"
            else:
                filename = f"compressed_{stem(upload.filename)}.{extension}"
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Compression failed")
        raise HTTPException(status_code=500, detail=f"Compression failed: {str(e)}")

    stats = image_service.compression_stats(upload.size, len(compressed))
    stored = store_result(
        filename=filename,
        content=compressed,
        media_type=media_type,
        metadata={
            "operation": "compress",
            "source": upload.filename,
            "level": compression.level,
            "quality": quality,
        },
    )

    return CompressionResponse(
        file=stored,
        file_type="pdf" if is_pdf else "image",
        quality=quality,
        stats=CompressionStats(**stats),
    )
