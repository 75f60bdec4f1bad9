from fastapi import APIRouter
from .tools import router as tools_router

router = APIRouter()
router.include_router(tools_router)

from .files import router as files_router
router.include_router(files_router)

from .pdf import router as pdf_router
router.include_router(pdf_router)

from .compress import router as compress_router
router.include_router(compress_router)

from .ocr import router as ocr_router
router.include_router(ocr_router)

from .word import router as word_router
router.include_router(word_router)
