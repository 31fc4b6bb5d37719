from pydantic import BaseModel, Field


class TargetSizeOptions(BaseModel):
    source_width: int = Field(gt=0)
    source_height: int = Field(gt=0)
    target_mib: float  # may be <= 0; the search reports that as a failed result
    quality: int = Field(ge=40, le=100)


class TargetSizeResult(BaseModel):
    """Outcome of a target size search.

    `iterations` is the number of probe calls made; `bytes` is the probed
    size of the returned dimensions (0 when nothing was probed).
    """

    width: int
    height: int
    scale: float
    bytes: int = Field(ge=0)
    success: bool
    warning: str | None = None
    iterations: int = Field(ge=0)
