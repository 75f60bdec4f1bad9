from fastapi import APIRouter, UploadFile, File as FileParam, Form, HTTPException
from fastapi.concurrency import run_in_threadpool
from typing import Optional
import logging

from filewizard.api.deps import parse_options, read_uploads, store_result
from filewizard.schemas.conversion import OcrOptions
from filewizard.schemas.file import OcrResponse
from filewizard.services.ocr_service import OcrUnavailable, ocr_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ocr", tags=["OCR"])

@router.post("", response_model=OcrResponse)
async def extract_text(
    file: UploadFile = FileParam(...),
    options: Optional[str] = Form(None),
):
    ocr_options = parse_options(OcrOptions, options)
    upload = (await read_uploads("ocr", [file]))[0]

    try:
        result = await run_in_threadpool(
            ocr_service.extract_text, upload.content, upload.content_type, ocr_options, upload.filename
        )
    except OcrUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("OCR failed")
        raise HTTPException(status_code=500, detail=f"Text extraction failed: {str(e)}")

    stored = store_result(
        filename="extracted_text.txt",
        content=result.text.encode("utf-8"),
        media_type="text/plain; charset=utf-8",
        metadata={"operation": "ocr", "source": upload.filename, **ocr_options.model_dump()},
    )

    return OcrResponse(
        text=result.text,
        language=result.language,
        page_count=result.page_count,
        is_empty=result.is_empty,
        file=stored,
    )
