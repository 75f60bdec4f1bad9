from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "FileWizard"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # CORS (comma-separated string)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5500,http://127.0.0.1:5500,http://localhost:8000"

    # Uploads
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50MB per file
    MAX_FILES: int = 10

    # Result store
    RESULT_TTL_SECONDS: int = 3600
    RESULT_MAX_ITEMS: int = 256

    # OCR
    TESSERACT_CMD: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

settings = Settings()
