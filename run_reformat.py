#!/usr/bin/env python3
"""Plan a reformat job, or size individual images for a target file size.

Usage:
    python run_reformat.py                                   # plan data/jobs/job.yaml
    python run_reformat.py --job other.yaml                  # plan a specific job file
    python run_reformat.py --target-mib 0.5 a.jpg b.png      # target size search per image
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from settings import Settings
from engine import job_planner
from engine.resize_plan import encoder_format
from engine.target_size import SearchLimits, estimate_dimensions_for_target, find_target_size
from models.job import ReformatJob
from models.target_size import TargetSizeOptions
from utils.bytes import format_mib
from utils.pil_probe import open_probe, read_image_info

logger = logging.getLogger("run_reformat")


async def _size_images(settings: Settings, paths: list[Path], target_mib: float, quality: int) -> int:
    limits = SearchLimits.from_settings(settings)
    failures = 0
    for path in paths:
        try:
            width, height, fmt, _ = read_image_info(path)
            encoder = encoder_format("same", fmt)
            if encoder not in ("jpeg", "webp"):
                encoder = "jpeg"
            est_w, est_h, _ = estimate_dimensions_for_target(width, height, target_mib, quality)
            logger.info("%s: %dx%d, estimate %dx%d", path.name, width, height, est_w, est_h)

            result = await find_target_size(
                TargetSizeOptions(
                    source_width=width, source_height=height,
                    target_mib=target_mib, quality=quality,
                ),
                open_probe(path, encoder),
                limits,
            )
        except Exception as exc:
            logger.warning("%s — SKIPPED: %s", path.name, exc)
            failures += 1
            continue

        status = "ok" if result.success else "MISSED"
        logger.info(
            "%s: %s %dx%d (scale %.3f) %s in %d probes%s",
            path.name, status, result.width, result.height, result.scale,
            format_mib(result.bytes), result.iterations,
            f" — {result.warning}" if result.warning else "",
        )
        if not result.success:
            failures += 1
    return failures


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--job", type=Path, default=None,
                        help="Job YAML to plan (default: <project_dir>/jobs/job.yaml)")
    parser.add_argument("--target-mib", type=float, default=None, dest="target_mib",
                        help="Run the target size search on the given images instead of a job")
    parser.add_argument("--quality", type=int, default=None,
                        help="Encoder quality 40-100 for --target-mib (default from settings)")
    parser.add_argument("images", nargs="*", type=Path)
    args = parser.parse_args()

    settings = Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.target_mib is not None:
        if not args.images:
            parser.error("--target-mib needs at least one image")
        quality = args.quality if args.quality is not None else settings.default_quality
        logger.info("=== Target size: %.2f MiB at q=%d ===", args.target_mib, quality)
        failures = asyncio.run(_size_images(settings, args.images, args.target_mib, quality))
        sys.exit(1 if failures else 0)

    job_path = args.job or settings.job_yaml_path
    logger.info("=== Planning %s ===", job_path)
    job = ReformatJob.load(job_path)
    plan = job_planner.run(settings, job, open_probe)
    logger.info("=== Done → %d planned, %d skipped ===", len(plan.configs), len(plan.skipped))


if __name__ == "__main__":
    main()
