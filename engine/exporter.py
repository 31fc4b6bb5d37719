"""Port for the external per-item exporter and the queue step that calls it.

The exporter itself (decode, encode, write, retry policy) lives outside this
package; only its call shape is fixed here.
"""
import logging
from typing import Protocol

from engine.crop_queue import CropQueueCallbacks, advance, cancel, current_item
from models.items import ImageItem, ItemResult, ItemRunConfig
from models.queue import CropQueueState

logger = logging.getLogger(__name__)


class CancellationToken:
    def __init__(self) -> None:
        self._canceled = False

    @property
    def canceled(self) -> bool:
        return self._canceled

    def cancel(self) -> None:
        self._canceled = True


class Exporter(Protocol):
    async def run(
        self,
        item: ImageItem,
        config: ItemRunConfig,
        token: CancellationToken,
    ) -> ItemResult: ...


async def export_current(
    state: CropQueueState,
    callbacks: CropQueueCallbacks,
    exporter: Exporter,
    config: ItemRunConfig,
    token: CancellationToken,
) -> ItemResult | None:
    """Export the queue's current item, then move the queue on.

    succeeded → advance; canceled → cancel the queue; failed → stay on the
    item so the user can adjust and retry. Returns None when the queue has
    no current item. Exporter exceptions propagate with the queue unchanged.
    """
    item = current_item(state)
    if item is None:
        return None
    if config.item_id != item.id:
        raise ValueError(f"config is for {config.item_id}, current item is {item.id}")

    result = await exporter.run(item, config, token)

    if result.status == "succeeded":
        advance(state, callbacks)
    elif result.status == "canceled":
        cancel(state, callbacks)
    else:
        logger.warning("Export failed for %s: %s", item.original_name, result.error)
    return result
