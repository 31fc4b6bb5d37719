"""Per-session store of each item's crop, transform and lens.

Owned by the caller: created when a session starts, filled on import via
`register`, emptied with `remove`/`clear`. Values are materialized lazily to
defaults, and crops are cloned on the way in and out so no two items (and no
caller) ever hold the same Crop object.

Satisfies `engine.crop_queue.CropQueueCallbacks`.
"""
import logging
from collections.abc import Callable, Iterable

from engine.crop_geometry import clone_crop, crops_equal, default_crop
from engine.transform_algebra import identity, is_identity
from models.crop import Crop
from models.items import ImageItem
from models.lens import LensPosition
from models.queue import CropQueueState
from models.transform import Transform

logger = logging.getLogger(__name__)


class ItemEditStore:
    def __init__(self, on_state_change: Callable[[CropQueueState], None] | None = None) -> None:
        self._crops: dict[str, Crop] = {}
        self._transforms: dict[str, Transform] = {}
        self._lenses: dict[str, LensPosition] = {}
        if on_state_change is not None:
            self.on_state_change = on_state_change

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._crops or item_id in self._transforms

    def __len__(self) -> int:
        return len(set(self._crops) | set(self._transforms))

    # --- lifecycle ---------------------------------------------------------

    def register(self, item: ImageItem) -> None:
        """Materialize defaults for a newly imported item (existing edits are kept)."""
        self._crops.setdefault(item.id, default_crop())
        self._transforms.setdefault(item.id, identity())

    def remove(self, item_ids: Iterable[str]) -> None:
        for item_id in item_ids:
            self._crops.pop(item_id, None)
            self._transforms.pop(item_id, None)
            self._lenses.pop(item_id, None)

    def clear(self) -> None:
        logger.debug("Clearing edits for %d items", len(self))
        self._crops.clear()
        self._transforms.clear()
        self._lenses.clear()

    # --- crop --------------------------------------------------------------

    def get_crop(self, item_id: str) -> Crop:
        crop = self._crops.setdefault(item_id, default_crop())
        return clone_crop(crop)

    def set_crop(self, item_id: str, crop: Crop) -> None:
        self._crops[item_id] = clone_crop(crop)

    # --- transform ---------------------------------------------------------

    def get_transform(self, item_id: str) -> Transform:
        return self._transforms.setdefault(item_id, identity())

    def set_transform(self, item_id: str, transform: Transform) -> None:
        self._transforms[item_id] = transform

    # --- lens --------------------------------------------------------------

    def get_lens(self, item_id: str) -> LensPosition | None:
        return self._lenses.get(item_id)

    def set_lens(self, item_id: str, lens: LensPosition | None) -> None:
        if lens is None:
            self._lenses.pop(item_id, None)
        else:
            self._lenses[item_id] = lens

    # --- queries -----------------------------------------------------------

    def is_dirty(self, item_id: str) -> bool:
        """True when the item's crop or transform differs from the defaults."""
        crop = self._crops.get(item_id)
        transform = self._transforms.get(item_id)
        if crop is not None and not crops_equal(crop, default_crop()):
            return True
        return transform is not None and not is_identity(transform)
