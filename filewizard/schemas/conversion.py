from pydantic import BaseModel, Field, field_validator
from typing import Optional, Union

PAGE_SIZE_PATTERN = "^(a4|a5|letter|legal)$"
ORIENTATION_PATTERN = "^(portrait|landscape)$"

MARGIN_PRESETS = {"none": 0, "small": 5, "normal": 10, "large": 20}
RASTER_QUALITY_PRESETS = {"high": 100, "medium": 75, "low": 50}


class ImageToPdfOptions(BaseModel):
    page_size: str = Field("a4", pattern=PAGE_SIZE_PATTERN)
    orientation: str = Field("portrait", pattern=ORIENTATION_PATTERN)
    margin: Union[int, str] = 10  # millimetres
    image_quality: int = Field(80, ge=1, le=100)
    fit_to_page: bool = True

    @field_validator('margin')
    def validate_margin(cls, v):
        if isinstance(v, str):
            if v.isdigit():
                v = int(v)
            elif v in MARGIN_PRESETS:
                return MARGIN_PRESETS[v]
            else:
                raise ValueError(f"margin must be 0-50 or one of {', '.join(MARGIN_PRESETS)}")
        if v < 0 or v > 50:
            raise ValueError('margin must be between 0 and 50 mm')
        return v


class PdfToImageOptions(BaseModel):
    image_format: str = Field("png", pattern="^(png|jpg|jpeg|webp)$")
    image_quality: Union[int, str] = 80
    pages: str = Field("all", pattern="^(all|first|custom)$")
    page_range: Optional[str] = Field(None, max_length=200)

    @field_validator('image_format')
    def normalize_format(cls, v):
        return "jpg" if v == "jpeg" else v

    @field_validator('image_quality')
    def validate_quality(cls, v):
        if isinstance(v, str):
            if v not in RASTER_QUALITY_PRESETS:
                raise ValueError(f"image_quality must be 1-100 or one of {', '.join(RASTER_QUALITY_PRESETS)}")
            return RASTER_QUALITY_PRESETS[v]
        if v < 1 or v > 100:
            raise ValueError('image_quality must be between 1 and 100')
        return v

    @property
    def scale(self) -> float:
        # quality 0-100 maps onto render scale 0-2
        return self.image_quality / 50


class CompressionOptions(BaseModel):
    level: str = Field("medium", pattern="^(low|medium|high|extreme)$")
    quality: Optional[int] = Field(None, ge=1, le=100)


class MergeOptions(BaseModel):
    include_bookmarks: bool = True
    optimize: bool = True
    compression: str = Field("none", pattern="^(none|low|medium|high)$")


class OcrOptions(BaseModel):
    language: str = Field("english", pattern="^(english|hindi|multi)$")
    enhance_image: bool = True
    detect_orientation: bool = True


class WordToPdfOptions(BaseModel):
    quality: str = Field("high", pattern="^(high|medium|low)$")
    page_size: str = Field("a4", pattern=PAGE_SIZE_PATTERN)
    orientation: str = Field("portrait", pattern=ORIENTATION_PATTERN)
