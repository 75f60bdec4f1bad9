from fastapi import APIRouter, UploadFile, File as FileParam, Form, HTTPException
from fastapi.concurrency import run_in_threadpool
from typing import Optional
import logging

from filewizard.api.deps import parse_options, read_uploads, stem, store_result
from filewizard.schemas.conversion import WordToPdfOptions
from filewizard.schemas.file import FileOut
from filewizard.services.word_service import word_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/word", tags=["Word Conversion"])

@router.post("/to-pdf", response_model=FileOut)
async def word_to_pdf(
    file: UploadFile = FileParam(...),
    options: Optional[str] = Form(None),
):
    word_options = parse_options(WordToPdfOptions, options)
    upload = (await read_uploads("word-to-pdf", [file]))[0]

    try:
        pdf_content = await run_in_threadpool(word_service.docx_to_pdf, upload.content, word_options)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Word to PDF conversion failed")
        raise HTTPException(status_code=500, detail=f"Conversion failed: {str(e)}")

    return store_result(
        filename=f"{stem(upload.filename)}.pdf",
        content=pdf_content,
        media_type="application/pdf",
        metadata={"operation": "word_to_pdf", "source": upload.filename, **word_options.model_dump()},
    )
