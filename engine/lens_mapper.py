"""Detail-preview lens: a draggable viewport shown at 1:1 pixel scale.

Three coordinate spaces meet here:
  - screen      pixels on the displayed (scaled-down) preview
  - normalized  0..1 relative to the displayed, already-transformed image
  - pixel       integer region of the transformed full-resolution image

The lens is always clamped, never rejected, so the UI can feed raw drag
deltas straight in.
"""
import logging

from engine.transform_algebra import dimensions_after
from models.lens import LensPosition, PixelRegion, ScreenRect
from models.transform import Transform

logger = logging.getLogger(__name__)

MIN_LENS_SIZE = 0.01

# Lenses at least this large are treated as covering the whole image
_FULL_COVERAGE = 0.999


def _clamp_size(value: float) -> float:
    return max(MIN_LENS_SIZE, min(1.0, value))


def centered_lens(width: float, height: float) -> LensPosition:
    width = _clamp_size(width)
    height = _clamp_size(height)
    return LensPosition(x=(1 - width) / 2, y=(1 - height) / 2, width=width, height=height)


def lens_dimensions_for(
    original_width: int,
    original_height: int,
    panel_width: int,
    panel_height: int,
    transform: Transform | None = None,
) -> tuple[float, float]:
    """Normalized lens (width, height) whose region exactly fills the detail panel at 1:1.

    Uses the transformed image size, since the panel shows the oriented image.
    Raises ValueError for non-positive image or panel dimensions.
    """
    if original_width <= 0 or original_height <= 0:
        raise ValueError("Invalid image dimensions")
    if panel_width <= 0 or panel_height <= 0:
        raise ValueError("Invalid panel dimensions")

    eff_w, eff_h = original_width, original_height
    if transform is not None:
        eff_w, eff_h = dimensions_after(original_width, original_height, transform)

    return min(1.0, panel_width / eff_w), min(1.0, panel_height / eff_h)


def screen_to_normalized(
    screen_x: float,
    screen_y: float,
    screen_width: float,
    screen_height: float,
    lens_width: float,
    lens_height: float,
) -> LensPosition:
    """Lens centred on the screen point (screen_x, screen_y), clamped to the image."""
    if screen_width <= 0 or screen_height <= 0:
        return centered_lens(lens_width, lens_height)

    width = _clamp_size(lens_width)
    height = _clamp_size(lens_height)
    x = screen_x / screen_width - width / 2
    y = screen_y / screen_height - height / 2

    return LensPosition(
        x=max(0.0, min(1.0 - width, x)),
        y=max(0.0, min(1.0 - height, y)),
        width=width,
        height=height,
    )


def normalized_to_screen(lens: LensPosition, screen_width: float, screen_height: float) -> ScreenRect:
    return ScreenRect(
        x=round(lens.x * screen_width),
        y=round(lens.y * screen_height),
        width=round(lens.width * screen_width),
        height=round(lens.height * screen_height),
    )


def pixel_region_for(
    lens: LensPosition,
    original_width: int,
    original_height: int,
    transform: Transform | None = None,
) -> PixelRegion:
    """Integer region of the transformed image covered by `lens`.

    Rounded, then clamped inside the image with a 1 px floor per side.
    """
    eff_w, eff_h = original_width, original_height
    if transform is not None:
        eff_w, eff_h = dimensions_after(original_width, original_height, transform)

    left = max(0, min(eff_w - 1, round(lens.x * eff_w)))
    top = max(0, min(eff_h - 1, round(lens.y * eff_h)))
    width = round(lens.width * eff_w)
    height = round(lens.height * eff_h)

    return PixelRegion(
        left=left,
        top=top,
        width=max(1, min(eff_w - left, width)),
        height=max(1, min(eff_h - top, height)),
    )


def detail_dimensions(
    lens: LensPosition,
    original_width: int,
    original_height: int,
    transform: Transform | None = None,
) -> tuple[int, int]:
    region = pixel_region_for(lens, original_width, original_height, transform)
    return region.width, region.height


def clamp_lens(lens: LensPosition) -> LensPosition:
    width = _clamp_size(lens.width)
    height = _clamp_size(lens.height)
    return LensPosition(
        x=max(0.0, min(1.0 - width, lens.x)),
        y=max(0.0, min(1.0 - height, lens.y)),
        width=width,
        height=height,
    )


def move_lens(lens: LensPosition, dx: float, dy: float) -> LensPosition:
    return clamp_lens(lens.model_copy(update={"x": lens.x + dx, "y": lens.y + dy}))


def is_full_coverage(lens: LensPosition) -> bool:
    return lens.width >= _FULL_COVERAGE and lens.height >= _FULL_COVERAGE


def lenses_equal(a: LensPosition, b: LensPosition) -> bool:
    return a.x == b.x and a.y == b.y and a.width == b.width and a.height == b.height


def lens_for_panel(
    original_width: int,
    original_height: int,
    panel_width: int,
    panel_height: int,
    transform: Transform | None = None,
) -> LensPosition | None:
    """Centred lens sized for the panel, or None when it would cover the whole image.

    Also None for an empty image or panel, e.g. a detail panel not laid out yet.
    """
    if min(original_width, original_height, panel_width, panel_height) <= 0:
        logger.debug("No lens for %dx%d image at panel %dx%d",
                     original_width, original_height, panel_width, panel_height)
        return None
    width, height = lens_dimensions_for(
        original_width, original_height, panel_width, panel_height, transform
    )
    lens = centered_lens(width, height)
    if is_full_coverage(lens):
        logger.debug(
            "Lens covers whole %dx%d image at panel %dx%d; overlay suppressed",
            original_width, original_height, panel_width, panel_height,
        )
        return None
    return lens
