"""Job planning: resolve every job entry to an exporter configuration.

Reads:  data/jobs/job.yaml               (ReformatJob, loaded by the caller)
        data/<entry.path>                (source images, header + probe only)
Writes: data/.cache/plans/plan.json      (JobPlan)

Entries whose image cannot be read or planned are logged and skipped; the
rest of the job still gets planned.
"""
import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from engine.crop_geometry import is_active
from engine.edit_store import ItemEditStore
from engine.lens_mapper import lens_for_panel, pixel_region_for
from engine.resize_plan import encoder_format, resolve_item_config
from engine.target_size import EncodeProbe, SearchLimits
from models.crop import Crop
from models.items import ImageItem
from models.job import JobEntry, JobPlan, ReformatJob
from models.resize import TargetMiBResize
from models.transform import Transform
from settings import Settings
from utils.bytes import format_mib
from utils.pil_probe import read_image_info

logger = logging.getLogger(__name__)

# (path, encoder, transform, crop) → probe for the oriented, cropped image
ProbeFactory = Callable[[Path, str, Transform, Crop], EncodeProbe]


def run(settings: Settings, job: ReformatJob, probe_factory: ProbeFactory) -> JobPlan:
    """Plan the job and write plan.json. Returns the completed JobPlan."""
    return asyncio.run(plan_job(settings, job, probe_factory))


async def plan_job(settings: Settings, job: ReformatJob, probe_factory: ProbeFactory) -> JobPlan:
    limits = SearchLimits.from_settings(settings)
    store = ItemEditStore()
    plan = JobPlan()

    for index, entry in enumerate(job.items, start=1):
        source = settings.project_dir / entry.path
        try:
            item = _read_item(source, entry.path, index)
            store.register(item)
            store.set_transform(item.id, entry.transform)
            store.set_crop(item.id, entry.crop)
            store.set_lens(item.id, lens_for_panel(
                item.width, item.height,
                settings.detail_panel_width, settings.detail_panel_height,
                entry.transform,
            ))

            transform = store.get_transform(item.id)
            crop = store.get_crop(item.id)
            probe = None
            if isinstance(job.resize, TargetMiBResize):
                encoder = encoder_format(job.output_format, item.format)
                probe = probe_factory(source, encoder, transform, crop)

            config = await resolve_item_config(
                item, transform, crop, job.resize, job.quality,
                output_format=job.output_format, probe=probe, limits=limits,
            )
        except Exception as exc:
            logger.warning("  [%03d] %s — SKIPPED: %s", index, entry.path, exc)
            plan.skipped.append(str(entry.path))
            continue

        plan.configs.append(config)
        lens = store.get_lens(item.id)
        if lens is not None:
            plan.details[item.id] = pixel_region_for(lens, item.width, item.height, transform)
        _log_config_line(index, entry, item, config)

    artifact_path = settings.plans_dir / "plan.json"
    settings.plans_dir.mkdir(parents=True, exist_ok=True)
    artifact_path.write_text(plan.model_dump_json(indent=2), encoding="utf-8")

    logger.info("Planning complete → %s", artifact_path)
    logger.info("  Planned: %d", len(plan.configs))
    logger.info("  Skipped: %d", len(plan.skipped))
    return plan


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_item(source: Path, relative_path: Path, index: int) -> ImageItem:
    width, height, fmt, has_alpha = read_image_info(source)
    return ImageItem(
        id=f"item_{index:03d}",
        original_name=source.name,
        source_path=relative_path,
        bytes=source.stat().st_size,
        width=width,
        height=height,
        format=fmt,
        has_alpha=has_alpha,
    )


def _log_config_line(index: int, entry: JobEntry, item: ImageItem, config) -> None:
    notes = []
    if is_active(config.crop):
        notes.append("cropped")
    if config.target is not None:
        notes.append(f"~{format_mib(config.target.bytes)}")
        if config.target.warning:
            notes.append(config.target.warning)
    suffix = f" [{'; '.join(notes)}]" if notes else ""
    logger.info(
        "  [%03d] %s — %dx%d → %dx%d %s%s",
        index, entry.path, item.width, item.height,
        config.output_width, config.output_height, config.output_format, suffix,
    )
