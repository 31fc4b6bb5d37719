"""Resize resolution: turn per-item edits and run settings into an ItemRunConfig.

Order of operations matches what the user sees: orientation first, then the
crop (drawn on the oriented image), then the resize. `target_mib` resizes are
resolved by the target size search on the post-crop dimensions.
"""
import logging

from engine.crop_geometry import clone_crop, is_active, normalized_to_pixel_crop
from engine.target_size import EncodeProbe, SearchLimits, find_target_size
from engine.transform_algebra import dimensions_after
from models.crop import Crop
from models.items import ImageItem, ItemRunConfig
from models.resize import (
    OutputFormat,
    PercentResize,
    PixelResize,
    QualitySettings,
    ResizeSettings,
    TargetMiBResize,
)
from models.target_size import TargetSizeOptions
from models.transform import Transform

logger = logging.getLogger(__name__)

# Quality used for formats without a lossy quality knob
_LOSSLESS_QUALITY = 85

_SOURCE_TO_ENCODER = {
    "jpeg": "jpeg", "jpg": "jpeg",
    "png": "png",
    "webp": "webp",
    "tiff": "tiff", "tif": "tiff",
    "heic": "heif", "heif": "heif",
    # No writer for these; re-encode losslessly
    "gif": "png",
    "bmp": "png",
}

_OUTPUT_TO_ENCODER = {
    "jpg": "jpeg",
    "png": "png",
    "webp": "webp",
    "tiff": "tiff",
    "heic": "heif",
    "bmp": "png",
}

_ENCODER_EXTENSIONS = {
    "jpeg": ".jpg",
    "png": ".png",
    "webp": ".webp",
    "tiff": ".tiff",
    "heif": ".heic",
}


# ---------------------------------------------------------------------------
# Format & quality
# ---------------------------------------------------------------------------

def encoder_format(output_format: OutputFormat, source_format: str | None = None) -> str:
    """Encoder name ('jpeg', 'png', ...) for the chosen output format.

    'same' follows the source; unknown or missing sources fall back to PNG.
    """
    if output_format == "same":
        return _SOURCE_TO_ENCODER.get((source_format or "").lower(), "png")
    return _OUTPUT_TO_ENCODER[output_format]


def output_extension(encoder: str) -> str:
    return _ENCODER_EXTENSIONS.get(encoder, ".png")


def quality_for_format(encoder: str, quality: QualitySettings) -> int:
    if encoder == "jpeg":
        return quality.jpg
    if encoder == "webp":
        return quality.webp
    if encoder == "heif":
        return quality.heic
    return _LOSSLESS_QUALITY


def supports_quality(encoder: str) -> bool:
    return encoder in ("jpeg", "webp", "heif")


# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

def target_dimensions(
    width: int,
    height: int,
    resize: PixelResize | PercentResize,
) -> tuple[int | None, int | None]:
    """Requested bounding box for pixel/percent resizes; None means unconstrained."""
    if isinstance(resize, PercentResize):
        scale = resize.percent / 100
        return round(width * scale), round(height * scale)

    if not resize.keep_ratio:
        return resize.width, resize.height
    if resize.driving == "width":
        return resize.width, None
    if resize.driving == "height":
        return None, resize.height
    # max_side: the longer side gets the value
    if width >= height:
        return resize.max_side, None
    return None, resize.max_side


def fit_inside(
    width: int,
    height: int,
    box_width: int | None,
    box_height: int | None,
) -> tuple[int, int]:
    """Scale (width, height) to fit inside the box, keeping ratio, never enlarging."""
    scales = []
    if box_width is not None:
        scales.append(box_width / width)
    if box_height is not None:
        scales.append(box_height / height)
    scale = min([1.0, *scales])
    return max(1, round(width * scale)), max(1, round(height * scale))


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

async def resolve_item_config(
    item: ImageItem,
    transform: Transform,
    crop: Crop,
    resize: ResizeSettings,
    quality: QualitySettings,
    output_format: OutputFormat = "same",
    probe: EncodeProbe | None = None,
    limits: SearchLimits | None = None,
) -> ItemRunConfig:
    """Compute the exporter configuration for one item.

    `probe` is required for `target_mib` resizes and must encode the
    oriented, cropped image; it is unused otherwise.
    """
    encoder = encoder_format(output_format, item.format)
    item_quality = quality_for_format(encoder, quality)

    width, height = dimensions_after(item.width, item.height, transform)

    crop_pixels = None
    if is_active(crop):
        crop_pixels = normalized_to_pixel_crop(crop.rect, width, height)
        width, height = crop_pixels.width, crop_pixels.height

    target = None
    if isinstance(resize, TargetMiBResize):
        if probe is None:
            raise ValueError(f"target_mib resize for {item.id} needs an encode probe")
        target = await find_target_size(
            TargetSizeOptions(
                source_width=width,
                source_height=height,
                target_mib=resize.target_mib,
                quality=item_quality,
            ),
            probe,
            limits,
        )
        out_w, out_h = target.width, target.height
    else:
        out_w, out_h = fit_inside(width, height, *target_dimensions(width, height, resize))

    logger.debug("Resolved %s → %s %dx%d q=%d", item.id, encoder, out_w, out_h, item_quality)
    return ItemRunConfig(
        item_id=item.id,
        output_format=encoder,
        transform=transform,
        crop=clone_crop(crop),
        crop_pixels=crop_pixels,
        output_width=out_w,
        output_height=out_h,
        quality=item_quality,
        target=target,
    )
