"""Crop queue: sequential "crop one image, export it, move on" workflow.

Entered when more than one image is selected and at least one of them has an
active crop. The caller drives it one event at a time:

    state = enter(items, store)
    while state.active:
        ...user crops current_item(state), caller awaits its export...
        advance(state, store)

Per-item crop/transform storage is supplied by the caller through
`CropQueueCallbacks` (see `engine.edit_store.ItemEditStore`). Calls made in
the wrong state (advance/cancel while idle, double cancel) are silent no-ops.
"""
import logging
from collections.abc import Callable
from typing import Literal, Protocol

from engine.crop_geometry import is_active
from engine.transform_algebra import identity
from models.crop import Crop, CropRect
from models.items import ImageItem
from models.queue import CropQueueState
from models.transform import Transform

logger = logging.getLogger(__name__)

ItemQueueStatus = Literal["current", "done", "pending", "none"]


class CropQueueCallbacks(Protocol):
    """Per-item storage the queue reads and writes.

    `get_crop` must return a materialized default, never None. `set_crop`
    implementations must copy the rect so no two items share one instance.
    An optional `on_state_change(state)` attribute, when present, is called
    after every state mutation.
    """

    def get_crop(self, item_id: str) -> Crop: ...

    def set_crop(self, item_id: str, crop: Crop) -> None: ...

    def get_transform(self, item_id: str) -> Transform: ...

    def set_transform(self, item_id: str, transform: Transform) -> None: ...


def _notify(callbacks: CropQueueCallbacks | None, state: CropQueueState) -> None:
    observer = getattr(callbacks, "on_state_change", None)
    if observer is not None:
        observer(state)


def _ensure_crop_active(item: ImageItem, callbacks: CropQueueCallbacks) -> None:
    crop = callbacks.get_crop(item.id)
    if not crop.active:
        callbacks.set_crop(item.id, Crop(active=True, ratio_preset="original", rect=CropRect.full()))


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------

def create_state() -> CropQueueState:
    return CropQueueState()


def has_any_crop_enabled(items: list[ImageItem], get_crop: Callable[[str], Crop]) -> bool:
    return any(is_active(get_crop(item.id)) for item in items)


def should_enter(items: list[ImageItem], get_crop: Callable[[str], Crop]) -> bool:
    if len(items) <= 1:
        return False
    return has_any_crop_enabled(items, get_crop)


def enter(items: list[ImageItem], callbacks: CropQueueCallbacks) -> CropQueueState:
    """Start a queue over `items` in the given order.

    Returns an idle state, without notifying, when the queue is not needed
    (one item or fewer, or no item with an active crop).
    """
    if not should_enter(items, callbacks.get_crop):
        logger.debug("Crop queue not entered: %d item(s), active crop required", len(items))
        return create_state()

    state = CropQueueState(
        active=True,
        items=list(items),
        current_index=0,
        completed_ids=set(),
        canceled=False,
    )
    _ensure_crop_active(state.items[0], callbacks)

    logger.info("Crop queue started with %d items", len(state.items))
    _notify(callbacks, state)
    return state


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def advance(state: CropQueueState, callbacks: CropQueueCallbacks) -> CropQueueState:
    """Mark the current item done and move to the next one.

    The next item starts from the identity transform and an active crop;
    orientation choices do not carry over between queue items.
    """
    if not state.active or state.canceled:
        logger.debug("advance() ignored: queue not active")
        return state

    if state.current_index < len(state.items):
        state.completed_ids.add(state.items[state.current_index].id)
    state.current_index += 1

    if state.current_index >= len(state.items):
        state.active = False
        logger.info("Crop queue finished: %d/%d done", len(state.completed_ids), len(state.items))
        _notify(callbacks, state)
        return state

    next_item = state.items[state.current_index]
    callbacks.set_transform(next_item.id, identity())
    _ensure_crop_active(next_item, callbacks)

    logger.debug("Crop queue advanced to %s (%s)", next_item.id, progress_string(state))
    _notify(callbacks, state)
    return state


def cancel(state: CropQueueState, callbacks: CropQueueCallbacks | None = None) -> CropQueueState:
    """Stop the queue. Completed items stay completed; the rest are left untouched."""
    if not state.active:
        logger.debug("cancel() ignored: queue not active")
        return state

    state.canceled = True
    state.active = False
    logger.info("Crop queue canceled after %d/%d items", len(state.completed_ids), len(state.items))
    _notify(callbacks, state)
    return state


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def current_item(state: CropQueueState) -> ImageItem | None:
    if not state.active or state.current_index >= len(state.items):
        return None
    return state.items[state.current_index]


def remaining_count(state: CropQueueState) -> int:
    return len(state.items) - len(state.completed_ids)


def completed_count(state: CropQueueState) -> int:
    return len(state.completed_ids)


def progress_string(state: CropQueueState) -> str:
    """'2 / 10', 1-based position of the current item."""
    return f"{state.current_index + 1} / {len(state.items)}"


def item_status(state: CropQueueState, item_id: str) -> ItemQueueStatus:
    if item_id in state.completed_ids:
        return "done"
    if not state.active:
        # Stale "pending" labels must not survive the end of a session
        return "none"

    index = next((i for i, item in enumerate(state.items) if item.id == item_id), -1)
    if index == -1:
        return "none"
    if index == state.current_index:
        return "current"
    if index > state.current_index:
        return "pending"
    return "none"
