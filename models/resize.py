from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator

OutputFormat = Literal["same", "jpg", "png", "webp", "tiff", "heic", "bmp"]


class PixelResize(BaseModel):
    mode: Literal["pixels"] = "pixels"
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    keep_ratio: bool = True
    driving: Literal["width", "height", "max_side"] = "max_side"
    max_side: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def driving_value_present(self) -> "PixelResize":
        if not self.keep_ratio:
            if self.width is None or self.height is None:
                raise ValueError("exact resize needs both width and height")
            return self
        required = {"width": self.width, "height": self.height, "max_side": self.max_side}
        if required[self.driving] is None:
            raise ValueError(f"driving dimension '{self.driving}' has no value")
        return self


class PercentResize(BaseModel):
    mode: Literal["percent"] = "percent"
    percent: float = Field(default=100.0, gt=0.0, le=100.0)


class TargetMiBResize(BaseModel):
    mode: Literal["target_mib"] = "target_mib"
    target_mib: float = Field(gt=0.0)


ResizeSettings = Annotated[
    Union[PixelResize, PercentResize, TargetMiBResize],
    Field(discriminator="mode"),
]


class QualitySettings(BaseModel):
    """Encoder quality per lossy format (40-100)."""

    jpg: int = Field(default=85, ge=40, le=100)
    webp: int = Field(default=85, ge=40, le=100)
    heic: int = Field(default=85, ge=40, le=100)
