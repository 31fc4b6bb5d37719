"""Target size search: turn an output byte budget into output dimensions.

The caller supplies an async *encode probe* `probe(width, height, quality) -> bytes`.
The search bisects a uniform scale factor `s` in (MIN_SCALE, 1], re-probing at
each midpoint, until the encoded size is within tolerance of the target, the
smaller side hits the pixel floor, or the probe budget runs out.

Assumes the probe is monotonically non-decreasing in width, height and
quality; this is not verified. Real codecs can be mildly non-monotonic at
aggressive settings, in which case the bracket may narrow on the wrong side
and the search ends with the best candidate seen.

Probes are awaited strictly one at a time; each midpoint depends on the
previous result. A probe exception propagates and aborts the search.

`estimate_*` functions are a cheap linear bytes-per-pixel model for live UI
display; they never call a probe and are not authoritative.
"""
import logging
import math
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, Field

from models.target_size import TargetSizeOptions, TargetSizeResult
from settings import Settings
from utils.bytes import bytes_to_mib, mib_to_bytes

logger = logging.getLogger(__name__)

EncodeProbe = Callable[[int, int, int], Awaitable[int]]

MIN_DIMENSION = 48
SIZE_TOLERANCE = 0.10
MAX_ITERATIONS = 20
MIN_SCALE = 0.01

# Bisection stops once the scale bracket is narrower than this
_CONVERGENCE = 0.001

# Linear bytes-per-pixel model: ~0.10 B/px at quality 40 → ~0.80 B/px at 100
_MIN_BPP = 0.10
_MAX_BPP = 0.80


class SearchLimits(BaseModel):
    tolerance: float = Field(default=SIZE_TOLERANCE, gt=0.0, lt=1.0)
    min_dimension: int = Field(default=MIN_DIMENSION, ge=1)
    max_iterations: int = Field(default=MAX_ITERATIONS, ge=2)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchLimits":
        return cls(
            tolerance=settings.target_tolerance,
            min_dimension=settings.min_dimension,
            max_iterations=settings.max_probe_iterations,
        )


class _Candidate(BaseModel):
    width: int
    height: int
    bytes: int
    scale: float


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_within_tolerance(actual_bytes: float, target_bytes: float, tolerance: float = SIZE_TOLERANCE) -> bool:
    return target_bytes * (1 - tolerance) <= actual_bytes <= target_bytes * (1 + tolerance)


def scaled_dimensions(source_width: int, source_height: int, scale: float) -> tuple[int, int]:
    """Uniformly scaled, rounded dimensions (never below 1 px)."""
    return (
        max(1, round(source_width * scale)),
        max(1, round(source_height * scale)),
    )


def floor_dimensions(source_width: int, source_height: int, min_dimension: int = MIN_DIMENSION) -> tuple[int, int, float]:
    """Dimensions with the smaller side exactly at the floor, aspect ratio kept.

    Returns (width, height, scale). Sources already at or below the floor
    are returned unchanged at scale 1.
    """
    smaller = min(source_width, source_height)
    if smaller <= min_dimension:
        return source_width, source_height, 1.0
    scale = min_dimension / smaller
    if source_width <= source_height:
        return min_dimension, max(min_dimension, round(source_height * scale)), scale
    return max(min_dimension, round(source_width * scale)), min_dimension, scale


def _is_better(candidate: _Candidate, best: _Candidate | None, target_bytes: int, upper: float) -> bool:
    """Prefer the largest result at or under the upper bound, else the closest one."""
    if best is None:
        return True
    cand_fits = candidate.bytes <= upper
    best_fits = best.bytes <= upper
    if cand_fits != best_fits:
        return cand_fits
    if cand_fits:
        return candidate.bytes > best.bytes
    return abs(candidate.bytes - target_bytes) < abs(best.bytes - target_bytes)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

async def find_target_size(
    options: TargetSizeOptions,
    probe: EncodeProbe,
    limits: SearchLimits | None = None,
) -> TargetSizeResult:
    """Find output dimensions whose encoded size lands within tolerance of the target.

    Expected edge conditions (non-positive target, unreachable target,
    source already under target) are reported via `success` and `warning`,
    not raised. Only probe failures propagate.
    """
    limits = limits or SearchLimits()
    sw, sh, quality = options.source_width, options.source_height, options.quality

    if options.target_mib <= 0:
        return TargetSizeResult(
            width=sw, height=sh, scale=1.0, bytes=0, success=False,
            warning="Target size must be greater than 0", iterations=0,
        )

    target_bytes = mib_to_bytes(options.target_mib)
    lower = target_bytes * (1 - limits.tolerance)
    upper = target_bytes * (1 + limits.tolerance)

    original_bytes = round(await probe(sw, sh, quality))
    iterations = 1
    logger.debug("Probe %d: %dx%d q=%d → %d bytes (target %d)", iterations, sw, sh, quality,
                 original_bytes, target_bytes)

    if is_within_tolerance(original_bytes, target_bytes, limits.tolerance):
        return TargetSizeResult(
            width=sw, height=sh, scale=1.0, bytes=original_bytes,
            success=True, iterations=iterations,
        )

    if original_bytes < lower:
        # No upscaling: keep the source size and say why the target was missed
        return TargetSizeResult(
            width=sw, height=sh, scale=1.0, bytes=original_bytes, success=True,
            warning=(
                f"Source ({bytes_to_mib(original_bytes):.2f} MiB) is smaller than "
                f"target; not upscaled"
            ),
            iterations=iterations,
        )

    floor_w, floor_h, floor_scale = floor_dimensions(sw, sh, limits.min_dimension)
    # Large sources reach the pixel floor below MIN_SCALE
    low_bound = min(MIN_SCALE, floor_scale)
    low, high = low_bound, 1.0
    best: _Candidate | None = None

    while iterations < limits.max_iterations:
        scale = (low + high) / 2
        width, height = scaled_dimensions(sw, sh, scale)

        collapsed = low == low_bound and high - low < 2 * _CONVERGENCE
        at_floor = collapsed or min(width, height) <= limits.min_dimension
        if collapsed or min(width, height) < limits.min_dimension:
            # Below the floor, or every probe so far was over target: use the floor
            width, height, scale = floor_w, floor_h, floor_scale

        n_bytes = round(await probe(width, height, quality))
        iterations += 1
        logger.debug("Probe %d: %dx%d (scale %.4f) → %d bytes", iterations, width, height,
                     scale, n_bytes)

        candidate = _Candidate(width=width, height=height, bytes=n_bytes, scale=scale)
        if _is_better(candidate, best, target_bytes, upper):
            best = candidate

        if is_within_tolerance(n_bytes, target_bytes, limits.tolerance):
            logger.info("Target %.2f MiB reached at %dx%d after %d probes",
                        options.target_mib, width, height, iterations)
            return TargetSizeResult(
                width=width, height=height, scale=scale, bytes=n_bytes,
                success=True, iterations=iterations,
            )

        if at_floor and n_bytes > upper:
            logger.warning("Target %.2f MiB unreachable: %dx%d floor still %d bytes",
                           options.target_mib, width, height, n_bytes)
            return TargetSizeResult(
                width=width, height=height, scale=scale, bytes=n_bytes, success=False,
                warning=(
                    f"Cannot reach target: minimum size {width}×{height} "
                    f"({limits.min_dimension} px floor) still produces "
                    f"{bytes_to_mib(n_bytes):.2f} MiB"
                ),
                iterations=iterations,
            )

        if collapsed:
            break

        if n_bytes > target_bytes:
            high = scale
        else:
            low = scale

        if high - low < _CONVERGENCE:
            break

    if best is None:  # pragma: no cover; max_iterations >= 2 guarantees one loop probe
        raise RuntimeError("Unreachable")
    met = is_within_tolerance(best.bytes, target_bytes, limits.tolerance)
    logger.info("Target search stopped after %d probes; closest %dx%d = %d bytes",
                iterations, best.width, best.height, best.bytes)
    return TargetSizeResult(
        width=best.width,
        height=best.height,
        scale=best.scale,
        bytes=best.bytes,
        success=met,
        warning=None if met else f"Closest achievable: {bytes_to_mib(best.bytes):.2f} MiB",
        iterations=iterations,
    )


# ---------------------------------------------------------------------------
# Analytic estimates (no probe)
# ---------------------------------------------------------------------------

def estimate_bytes_per_pixel(quality: int) -> float:
    normalized = (max(40, min(100, quality)) - 40) / 60
    return _MIN_BPP + normalized * (_MAX_BPP - _MIN_BPP)


def estimate_file_size(width: int, height: int, quality: int) -> int:
    return round(width * height * estimate_bytes_per_pixel(quality))


def estimate_dimensions_for_target(
    source_width: int,
    source_height: int,
    target_mib: float,
    quality: int,
    min_dimension: int = MIN_DIMENSION,
) -> tuple[int, int, float]:
    """Estimated (width, height, scale) for a target, from the bytes-per-pixel model."""
    if target_mib <= 0:
        return source_width, source_height, 1.0

    target_pixels = mib_to_bytes(target_mib) / estimate_bytes_per_pixel(quality)
    scale = math.sqrt(target_pixels / (source_width * source_height))
    scale = min(1.0, max(MIN_SCALE, scale))

    width, height = scaled_dimensions(source_width, source_height, scale)
    if min(width, height) < min_dimension:
        width, height, scale = floor_dimensions(source_width, source_height, min_dimension)
    return width, height, scale
