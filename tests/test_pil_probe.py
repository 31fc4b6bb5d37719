"""Tests for the Pillow encode probe and image header reading.

Images are generated on the fly into tmp_path.
"""
import asyncio
from pathlib import Path

import pytest
from PIL import Image

from engine.target_size import find_target_size
from models.crop import Crop, CropRect, PixelCrop
from models.target_size import TargetSizeOptions
from models.transform import Transform
from utils.pil_probe import (
    PillowEncodeProbe,
    apply_transform,
    load_oriented,
    open_probe,
    read_image_info,
)


def _noise(width: int, height: int) -> Image.Image:
    return Image.effect_noise((width, height), 64).convert("RGB")


def _save_jpeg(path: Path, width: int, height: int, orientation: int | None = None) -> Path:
    img = _noise(width, height)
    if orientation is None:
        img.save(path, format="JPEG", quality=90)
    else:
        exif = Image.Exif()
        exif[274] = orientation
        img.save(path, format="JPEG", quality=90, exif=exif.tobytes())
    return path


# ---------------------------------------------------------------------------
# Header reading
# ---------------------------------------------------------------------------

class TestReadImageInfo:
    def test_plain_jpeg(self, tmp_path):
        path = _save_jpeg(tmp_path / "a.jpg", 120, 80)
        assert read_image_info(path) == (120, 80, "jpeg", False)

    @pytest.mark.parametrize("orientation", [5, 6, 7, 8])
    def test_rotating_orientation_swaps(self, tmp_path, orientation):
        path = _save_jpeg(tmp_path / "a.jpg", 120, 80, orientation=orientation)
        width, height, _, _ = read_image_info(path)
        assert (width, height) == (80, 120)

    def test_mirroring_orientation_keeps_size(self, tmp_path):
        path = _save_jpeg(tmp_path / "a.jpg", 120, 80, orientation=2)
        assert read_image_info(path)[:2] == (120, 80)

    def test_png_with_alpha(self, tmp_path):
        path = tmp_path / "a.png"
        Image.new("RGBA", (30, 20), (255, 0, 0, 128)).save(path)
        assert read_image_info(path) == (30, 20, "png", True)

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "a.jpg"
        path.write_text("not an image")
        with pytest.raises(OSError):
            read_image_info(path)

    def test_load_oriented_applies_exif(self, tmp_path):
        path = _save_jpeg(tmp_path / "a.jpg", 120, 80, orientation=6)
        img = load_oriented(path)
        assert img.size == (80, 120)


# ---------------------------------------------------------------------------
# Probe
# ---------------------------------------------------------------------------

class TestPillowEncodeProbe:
    def test_unknown_encoder(self):
        with pytest.raises(ValueError, match="heif"):
            PillowEncodeProbe(_noise(10, 10), "heif")

    def test_smaller_output_encodes_smaller(self):
        probe = PillowEncodeProbe(_noise(400, 300), "jpeg")
        big = asyncio.run(probe(400, 300, 85))
        small = asyncio.run(probe(100, 75, 85))
        assert 0 < small < big
        assert probe.calls == 2

    def test_quality_affects_jpeg_size(self):
        probe = PillowEncodeProbe(_noise(200, 200), "jpeg")
        assert probe.encoded_size(200, 200, 40) < probe.encoded_size(200, 200, 95)

    def test_png_ignores_quality(self):
        probe = PillowEncodeProbe(_noise(50, 50), "png")
        assert probe.encoded_size(50, 50, 40) == probe.encoded_size(50, 50, 95)

    def test_rgba_converted_for_jpeg(self):
        probe = PillowEncodeProbe(Image.new("RGBA", (20, 20)), "jpeg")
        assert probe.encoded_size(20, 20, 85) > 0

    def test_transform_then_crop(self):
        probe = PillowEncodeProbe(
            _noise(400, 200), "png",
            transform=Transform(rotate_steps=1),
            crop_pixels=PixelCrop(left=0, top=0, width=100, height=400),
        )
        assert probe.size == (100, 400)

    def test_apply_transform_leaves_source(self):
        img = _noise(40, 20)
        rotated = apply_transform(img, Transform(rotate_steps=1, flip_h=True))
        assert rotated.size == (20, 40)
        assert img.size == (40, 20)


class TestOpenProbe:
    def test_oriented_and_cropped(self, tmp_path):
        path = _save_jpeg(tmp_path / "a.jpg", 400, 200, orientation=6)
        crop = Crop(active=True, rect=CropRect(x=0.0, y=0.0, width=0.5, height=0.5))
        probe = open_probe(path, "jpeg", Transform(rotate_steps=1), crop)
        # EXIF turns 400x200 into 200x400; the user's quarter turn back to 400x200
        assert probe.size == (200, 100)

    def test_inactive_crop_ignored(self, tmp_path):
        path = _save_jpeg(tmp_path / "a.jpg", 120, 80)
        probe = open_probe(path, "jpeg", None, Crop(active=False))
        assert probe.size == (120, 80)

    def test_drives_target_search(self, tmp_path):
        path = _save_jpeg(tmp_path / "a.jpg", 800, 600)
        probe = open_probe(path, "jpeg")
        full = probe.encoded_size(800, 600, 85)
        target_mib = full / 4 / 1_048_576

        result = asyncio.run(find_target_size(
            TargetSizeOptions(source_width=800, source_height=600, target_mib=target_mib, quality=85),
            probe,
        ))
        assert result.width < 800
        assert result.iterations == probe.calls
