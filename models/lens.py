from pydantic import BaseModel, ConfigDict, Field


class LensPosition(BaseModel):
    """Viewport into the un-cropped image for the 1:1 detail preview.

    Same shape as CropRect; normalized to the displayed (transformed) image.
    """

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float


class PixelRegion(BaseModel):
    """Integer region to extract from the transformed image."""

    model_config = ConfigDict(frozen=True)

    left: int = Field(ge=0)
    top: int = Field(ge=0)
    width: int = Field(ge=1)
    height: int = Field(ge=1)


class ScreenRect(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    width: int
    height: int
