from fastapi import APIRouter, UploadFile, File as FileParam, Form, HTTPException
from fastapi.concurrency import run_in_threadpool
from typing import List, Optional
import logging

from filewizard.api.deps import parse_options, read_uploads, stem, store_result
from filewizard.schemas.conversion import ImageToPdfOptions, MergeOptions, PdfToImageOptions
from filewizard.schemas.file import FileOut, PdfInfoResponse, PdfToImageResponse
from filewizard.services.pdf_service import pdf_service
from filewizard.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pdf", tags=["PDF Manipulation"])

IMAGE_MEDIA_TYPES = {"png": "image/png", "jpg": "image/jpeg", "webp": "image/webp"}

@router.post("/merge", response_model=FileOut)
async def merge_pdfs(
    files: List[UploadFile] = FileParam(...),
    options: Optional[str] = Form(None),
):
    merge_options = parse_options(MergeOptions, options)
    uploads = await read_uploads("merge-pdf", files)

    try:
        merged_pdf = await run_in_threadpool(
            pdf_service.merge_pdfs,
            [upload.content for upload in uploads],
            [upload.filename for upload in uploads],
            merge_options.include_bookmarks,
            merge_options.optimize,
            merge_options.compression,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("PDF merge failed")
        raise HTTPException(status_code=500, detail=f"Merge failed: {str(e)}")

    return store_result(
        filename="merged_document.pdf",
        content=merged_pdf,
        media_type="application/pdf",
        metadata={
            "operation": "pdf_merge",
            "sources": [upload.filename for upload in uploads],
            **merge_options.model_dump(),
        },
    )

@router.post("/info", response_model=PdfInfoResponse)
async def pdf_info(file: UploadFile = FileParam(...)):
    upload = (await read_uploads("pdf-to-image", [file]))[0]
    try:
        total_pages = await run_in_threadpool(pdf_service.count_pages, upload.content, upload.filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PdfInfoResponse(filename=upload.filename, total_pages=total_pages)

@router.post("/to-image", response_model=PdfToImageResponse)
async def pdf_to_image(
    file: UploadFile = FileParam(...),
    options: Optional[str] = Form(None),
):
    image_options = parse_options(PdfToImageOptions, options)
    upload = (await read_uploads("pdf-to-image", [file]))[0]

    try:
        total_pages, rendered = await run_in_threadpool(
            pdf_service.pdf_to_images, upload.content, image_options, upload.filename
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("PDF to image conversion failed")
        raise HTTPException(status_code=500, detail=f"Conversion failed: {str(e)}")

    base = stem(upload.filename)
    fmt = image_options.image_format
    media_type = IMAGE_MEDIA_TYPES[fmt]
    named = [(f"{base}_page{index + 1}.{fmt}", content) for index, content in rendered]

    # too many pages to keep individually: only the archive is stored
    images = []
    if len(named) == 1 or len(named) + 1 <= storage_service.max_items:
        for (filename, content), (index, _) in zip(named, rendered):
            images.append(store_result(
                filename=filename,
                content=content,
                media_type=media_type,
                metadata={"operation": "pdf_to_image", "source": upload.filename, "page": index + 1},
            ))
    else:
        logger.warning("%s rendered %d pages, storing the archive only", upload.filename, len(named))

    archive = None
    if len(named) > 1:
        archive = store_result(
            filename=f"{base}_pages.zip",
            content=pdf_service.pages_to_zip(named),
            media_type="application/zip",
            metadata={"operation": "pdf_to_image", "source": upload.filename, "pages": len(named)},
        )

    return PdfToImageResponse(
        total_pages=total_pages,
        pages=[index + 1 for index, _ in rendered],
        images=images,
        archive=archive,
    )

@router.post("/from-images", response_model=FileOut)
async def images_to_pdf(
    files: List[UploadFile] = FileParam(...),
    options: Optional[str] = Form(None),
):
    pdf_options = parse_options(ImageToPdfOptions, options)
    uploads = await read_uploads("image-to-pdf", files)

    try:
        pdf_content = await run_in_threadpool(
            pdf_service.images_to_pdf,
            [upload.content for upload in uploads],
            pdf_options,
            [upload.filename for upload in uploads],
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Image to PDF conversion failed")
        raise HTTPException(status_code=500, detail=f"Conversion failed: {str(e)}")

    return store_result(
        filename="converted_images.pdf",
        content=pdf_content,
        media_type="application/pdf",
        metadata={
            "operation": "image_to_pdf",
            "sources": [upload.filename for upload in uploads],
            **pdf_options.model_dump(),
        },
    )
