"""Crop rectangle geometry in normalized image coordinates.

Rects are normalized (0..1) to the *transformed* image, i.e. what the user
sees after rotation/flip. Conversion to pixels happens only at the edge,
via `normalized_to_pixel_crop*`. Nothing here raises: out-of-range input
is clamped.
"""
import math
from typing import Literal

from engine.transform_algebra import dimensions_after, is_identity
from models.crop import Crop, CropRatioPreset, CropRect, PixelCrop
from models.transform import Transform

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2

# Smallest normalized edge a clamped rect may have
MIN_RECT_SIZE = 0.01

_FULL_IMAGE_EPSILON = 0.001

CROP_RATIO_PRESETS: tuple[CropRatioPreset, ...] = (
    "original", "free", "1:1", "4:5", "3:4", "9:16", "16:9", "2:3", "3:2", "golden",
)

_FIXED_RATIOS: dict[str, float] = {
    "1:1": 1.0,
    "4:5": 4 / 5,
    "3:4": 3 / 4,
    "9:16": 9 / 16,
    "16:9": 16 / 9,
    "2:3": 2 / 3,
    "3:2": 3 / 2,
    "golden": GOLDEN_RATIO,
}

_PRESET_LABELS: dict[str, str] = {
    "original": "Original",
    "free": "Free",
    "1:1": "1:1 (Square)",
    "4:5": "4:5 (Portrait)",
    "3:4": "3:4 (Portrait)",
    "9:16": "9:16 (Portrait)",
    "16:9": "16:9 (Landscape)",
    "2:3": "2:3 (Portrait)",
    "3:2": "3:2 (Landscape)",
    "golden": "Golden (1.618:1)",
}

Anchor = Literal["center", "top-left", "top-right", "bottom-left", "bottom-right"]


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

def aspect_ratio_for(
    preset: CropRatioPreset,
    width: float | None = None,
    height: float | None = None,
) -> float | None:
    """Width/height ratio a preset locks the crop to, or None when unconstrained.

    `free` is never constrained. `original` follows the image's own ratio and
    is unconstrained when no usable dimensions are given.
    """
    if preset == "original":
        if width and height and width > 0 and height > 0:
            return width / height
        return None
    return _FIXED_RATIOS.get(preset)


def preset_label(preset: CropRatioPreset) -> str:
    return _PRESET_LABELS.get(preset, preset)


# ---------------------------------------------------------------------------
# Construction & validation
# ---------------------------------------------------------------------------

def default_crop() -> Crop:
    """Full image, inactive."""
    return Crop(active=False, ratio_preset="original", rect=CropRect.full())


def centered_rect(aspect_ratio: float | None, width: float, height: float) -> CropRect:
    """Largest rect with `aspect_ratio` (in pixels) centered in the image.

    A missing or non-positive ratio yields the full image.
    """
    if aspect_ratio is None or aspect_ratio <= 0 or width <= 0 or height <= 0:
        return CropRect.full()

    image_ratio = width / height
    if aspect_ratio > image_ratio:
        # Wider than the image: full width, trim height
        rect_w = 1.0
        rect_h = image_ratio / aspect_ratio
    else:
        rect_h = 1.0
        rect_w = aspect_ratio / image_ratio

    rect_w = min(1.0, rect_w)
    rect_h = min(1.0, rect_h)
    return CropRect(x=(1 - rect_w) / 2, y=(1 - rect_h) / 2, width=rect_w, height=rect_h)


def clamp_crop_rect(rect: CropRect) -> CropRect:
    x = max(0.0, min(1.0, rect.x))
    y = max(0.0, min(1.0, rect.y))
    width = max(MIN_RECT_SIZE, min(1.0 - x, rect.width))
    height = max(MIN_RECT_SIZE, min(1.0 - y, rect.height))
    return CropRect(x=x, y=y, width=width, height=height)


def is_full_image_rect(rect: CropRect) -> bool:
    return (
        abs(rect.x) < _FULL_IMAGE_EPSILON
        and abs(rect.y) < _FULL_IMAGE_EPSILON
        and abs(rect.width - 1) < _FULL_IMAGE_EPSILON
        and abs(rect.height - 1) < _FULL_IMAGE_EPSILON
    )


def is_active(crop: Crop | None) -> bool:
    """A crop counts only when enabled *and* it actually cuts something away."""
    if crop is None:
        return False
    return crop.active and not is_full_image_rect(crop.rect)


def clone_crop(crop: Crop) -> Crop:
    return Crop(
        active=crop.active,
        ratio_preset=crop.ratio_preset,
        rect=CropRect(x=crop.rect.x, y=crop.rect.y, width=crop.rect.width, height=crop.rect.height),
    )


def crop_rects_equal(a: CropRect, b: CropRect, epsilon: float = 1e-4) -> bool:
    return (
        abs(a.x - b.x) < epsilon
        and abs(a.y - b.y) < epsilon
        and abs(a.width - b.width) < epsilon
        and abs(a.height - b.height) < epsilon
    )


def crops_equal(a: Crop, b: Crop) -> bool:
    return (
        a.active == b.active
        and a.ratio_preset == b.ratio_preset
        and crop_rects_equal(a.rect, b.rect)
    )


# ---------------------------------------------------------------------------
# Ratio adjustment
# ---------------------------------------------------------------------------

def crop_rect_aspect_ratio(rect: CropRect, width: float, height: float) -> float:
    pixel_w = rect.width * width
    pixel_h = rect.height * height
    return pixel_w / pixel_h if pixel_h > 0 else 1.0


def adjust_to_ratio(
    rect: CropRect,
    aspect_ratio: float,
    width: float,
    height: float,
    anchor: Anchor = "center",
) -> CropRect:
    """Shrink `rect` along one axis until it matches `aspect_ratio`.

    The `anchor` edge/corner stays fixed. Non-positive ratios return `rect`.
    """
    if aspect_ratio <= 0 or width <= 0 or height <= 0:
        return rect

    image_ratio = width / height
    new_w, new_h = rect.width, rect.height

    if crop_rect_aspect_ratio(rect, width, height) > aspect_ratio:
        new_w = (aspect_ratio / image_ratio) * rect.height
    else:
        new_h = (image_ratio / aspect_ratio) * rect.width

    new_x, new_y = rect.x, rect.y
    if anchor == "center":
        new_x = rect.x + (rect.width - new_w) / 2
        new_y = rect.y + (rect.height - new_h) / 2
    elif anchor == "top-right":
        new_x = rect.x + rect.width - new_w
    elif anchor == "bottom-left":
        new_y = rect.y + rect.height - new_h
    elif anchor == "bottom-right":
        new_x = rect.x + rect.width - new_w
        new_y = rect.y + rect.height - new_h

    return clamp_crop_rect(CropRect(x=new_x, y=new_y, width=new_w, height=new_h))


# ---------------------------------------------------------------------------
# Pixel conversion
# ---------------------------------------------------------------------------

def normalized_to_pixel_crop(rect: CropRect, width: int, height: int) -> PixelCrop:
    """Pixel crop of a `width`×`height` image. Never empty, never out of bounds."""
    clamped = clamp_crop_rect(rect)

    left = max(0, min(round(clamped.x * width), width - 1))
    top = max(0, min(round(clamped.y * height), height - 1))
    crop_w = round(clamped.width * width)
    crop_h = round(clamped.height * height)

    return PixelCrop(
        left=left,
        top=top,
        width=max(1, min(crop_w, width - left)),
        height=max(1, min(crop_h, height - top)),
    )


def normalized_to_pixel_crop_with_transform(
    rect: CropRect,
    original_width: int,
    original_height: int,
    transform: Transform | None = None,
) -> PixelCrop:
    """Map a rect drawn on the transformed view back to original-orientation pixels.

    Flips are undone first (in transformed space), then the clockwise
    rotation is undone one counter-clockwise quarter turn at a time.
    """
    if transform is None or is_identity(transform):
        return normalized_to_pixel_crop(rect, original_width, original_height)

    rect = clamp_crop_rect(rect)
    eff_w, eff_h = dimensions_after(original_width, original_height, transform)

    left = rect.x * eff_w
    top = rect.y * eff_h
    px_w = rect.width * eff_w
    px_h = rect.height * eff_h

    if transform.flip_h:
        left = eff_w - left - px_w
    if transform.flip_v:
        top = eff_h - top - px_h

    cur_w, cur_h = eff_w, eff_h
    for _ in range(transform.rotate_steps):
        # Quarter turn counter-clockwise: (x, y) → (y, W - x - w)
        left, top = top, cur_w - left - px_w
        px_w, px_h = px_h, px_w
        cur_w, cur_h = cur_h, cur_w

    left_i = max(0, min(round(left), original_width - 1))
    top_i = max(0, min(round(top), original_height - 1))
    return PixelCrop(
        left=left_i,
        top=top_i,
        width=max(1, min(round(px_w), original_width - left_i)),
        height=max(1, min(round(px_h), original_height - top_i)),
    )
