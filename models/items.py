from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from models.crop import Crop, PixelCrop
from models.target_size import TargetSizeResult
from models.transform import Transform


class ImageItem(BaseModel):
    """An imported image as the engine sees it: identity plus source dimensions.

    Dimensions are the EXIF-corrected (displayed) size, before any Transform.
    """

    id: str
    original_name: str
    source_path: Path | None = None  # None for clipboard-sourced items
    bytes: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    format: str | None = None
    has_alpha: bool = False


class ItemRunConfig(BaseModel):
    """Resolved per-item configuration handed to the external exporter."""

    item_id: str
    output_format: str
    transform: Transform = Field(default_factory=Transform)
    crop: Crop = Field(default_factory=Crop)
    crop_pixels: PixelCrop | None = None  # in transformed space; None when crop inactive
    output_width: int = Field(gt=0)
    output_height: int = Field(gt=0)
    quality: int = Field(ge=1, le=100)
    target: TargetSizeResult | None = None


class ItemResult(BaseModel):
    item_id: str
    status: Literal["succeeded", "failed", "canceled"]
    output_path: Path | None = None
    output_bytes: int | None = None
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
