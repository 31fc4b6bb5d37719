"""Pillow-backed encode probe for the target size search.

The probe applies orientation and crop once, then for each call resizes the
prepared image and encodes it into memory, reporting the byte count. The
search in `engine.target_size` only ever sees the async callable.
"""
import asyncio
import io
import logging
from pathlib import Path

from PIL import Image, ImageOps

from engine.crop_geometry import is_active, normalized_to_pixel_crop
from engine.transform_algebra import dimensions_after, to_pil_operations
from models.crop import Crop, PixelCrop
from models.transform import Transform

logger = logging.getLogger(__name__)

# Encoder name → Pillow save() format
_PIL_FORMATS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "tiff": "TIFF",
}


def apply_transform(img: Image.Image, transform: Transform) -> Image.Image:
    """Return a transposed copy; `img` is left untouched."""
    result = img
    for op in to_pil_operations(transform):
        result = result.transpose(op)
    return result


class PillowEncodeProbe:
    """Async `(width, height, quality) -> bytes` over an in-memory image."""

    def __init__(
        self,
        image: Image.Image,
        encoder: str = "jpeg",
        transform: Transform | None = None,
        crop_pixels: PixelCrop | None = None,
    ) -> None:
        if encoder not in _PIL_FORMATS:
            raise ValueError(f"No Pillow encoder for '{encoder}'")
        self._format = _PIL_FORMATS[encoder]

        prepared = apply_transform(image, transform) if transform is not None else image
        if crop_pixels is not None:
            prepared = prepared.crop(crop_pixels.as_box())
        if self._format == "JPEG" and prepared.mode not in ("RGB", "L"):
            prepared = prepared.convert("RGB")
        self._image = prepared
        self.calls = 0

    @property
    def size(self) -> tuple[int, int]:
        return self._image.size

    def encoded_size(self, width: int, height: int, quality: int) -> int:
        resized = self._image.resize((width, height), Image.Resampling.LANCZOS)
        buf = io.BytesIO()
        if self._format in ("JPEG", "WEBP"):
            resized.save(buf, format=self._format, quality=quality)
        else:
            resized.save(buf, format=self._format)
        return len(buf.getvalue())

    async def __call__(self, width: int, height: int, quality: int) -> int:
        self.calls += 1
        # Encoding is CPU-bound; keep the event loop responsive
        n_bytes = await asyncio.to_thread(self.encoded_size, width, height, quality)
        logger.debug("Encoded %dx%d %s q=%d → %d bytes", width, height, self._format, quality, n_bytes)
        return n_bytes


def load_oriented(path: Path) -> Image.Image:
    """Open an image with EXIF orientation applied, detached from the file handle."""
    with Image.open(path) as img:
        corrected = ImageOps.exif_transpose(img)
        corrected = corrected.copy()
    return corrected


def read_image_info(path: Path) -> tuple[int, int, str | None, bool]:
    """(width, height, format, has_alpha) as displayed, i.e. after EXIF orientation."""
    with Image.open(path) as img:
        width, height = img.size
        orientation = img.getexif().get(274, 1)  # 274 = Orientation
        fmt = img.format.lower() if img.format else None
        has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
    if orientation in (5, 6, 7, 8):
        width, height = height, width
    return width, height, fmt, has_alpha


def open_probe(
    path: Path,
    encoder: str,
    transform: Transform | None = None,
    crop: Crop | None = None,
) -> PillowEncodeProbe:
    """Probe for the file at `path` as it will be exported: oriented, then cropped."""
    image = load_oriented(path)
    crop_pixels = None
    if is_active(crop):
        width, height = image.size
        if transform is not None:
            width, height = dimensions_after(width, height, transform)
        crop_pixels = normalized_to_pixel_crop(crop.rect, width, height)
    return PillowEncodeProbe(image, encoder, transform, crop_pixels)
