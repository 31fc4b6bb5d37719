from pydantic import BaseModel, Field

from models.items import ImageItem


class CropQueueState(BaseModel):
    """State of a sequential crop-then-export session.

    Mutable: transitions in `engine.crop_queue` update this object in place
    and return it. `items` keeps selection order; `completed_ids` only ever
    holds ids of `items`.
    """

    active: bool = False
    items: list[ImageItem] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0)
    completed_ids: set[str] = Field(default_factory=set)
    canceled: bool = False
