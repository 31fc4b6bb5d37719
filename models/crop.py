from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CropRatioPreset = Literal[
    "original", "free", "1:1", "4:5", "3:4", "9:16", "16:9", "2:3", "3:2", "golden",
]


class CropRect(BaseModel):
    """Normalized (0..1) crop rectangle relative to the *transformed* image."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    width: float = 1.0
    height: float = 1.0

    @classmethod
    def full(cls) -> "CropRect":
        return cls(x=0.0, y=0.0, width=1.0, height=1.0)


class Crop(BaseModel):
    """Per-item crop settings.

    `active` alone does not mean anything is cut away; see
    `engine.crop_geometry.is_active` for the effective check.
    """

    active: bool = False
    ratio_preset: CropRatioPreset = "original"
    rect: CropRect = Field(default_factory=CropRect.full)


class PixelCrop(BaseModel):
    left: int = Field(ge=0)
    top: int = Field(ge=0)
    width: int = Field(ge=1)
    height: int = Field(ge=1)

    def as_box(self) -> tuple[int, int, int, int]:
        """Pillow-style (left, upper, right, lower) box."""
        return (self.left, self.top, self.left + self.width, self.top + self.height)
