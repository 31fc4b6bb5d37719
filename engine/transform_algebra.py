"""Orientation transforms: construction, composition and dimension mapping.

A Transform is `rotate_steps` clockwise quarter turns followed by optional
horizontal/vertical flips. Every function here is pure and total; Transforms
are frozen, so each operation returns a new value.
"""
from PIL import Image

from models.transform import Transform

# Clockwise quarter turns → Pillow transpose op (Pillow's ROTATE_* are counter-clockwise)
_PIL_ROTATIONS = {
    1: Image.Transpose.ROTATE_270,
    2: Image.Transpose.ROTATE_180,
    3: Image.Transpose.ROTATE_90,
}


def identity() -> Transform:
    return Transform(rotate_steps=0, flip_h=False, flip_v=False)


def rotate_cw(transform: Transform) -> Transform:
    return transform.model_copy(update={"rotate_steps": (transform.rotate_steps + 1) % 4})


def rotate_ccw(transform: Transform) -> Transform:
    # +3 ≡ -1 (mod 4)
    return transform.model_copy(update={"rotate_steps": (transform.rotate_steps + 3) % 4})


def flip_h(transform: Transform) -> Transform:
    return transform.model_copy(update={"flip_h": not transform.flip_h})


def flip_v(transform: Transform) -> Transform:
    return transform.model_copy(update={"flip_v": not transform.flip_v})


def is_identity(transform: Transform) -> bool:
    return transform.rotate_steps == 0 and not transform.flip_h and not transform.flip_v


def transforms_equal(a: Transform, b: Transform) -> bool:
    return (
        a.rotate_steps == b.rotate_steps
        and a.flip_h == b.flip_h
        and a.flip_v == b.flip_v
    )


def swaps_axes(transform: Transform) -> bool:
    """True for 90° and 270° rotations."""
    return transform.rotate_steps % 2 == 1


def dimensions_after(width: int, height: int, transform: Transform) -> tuple[int, int]:
    """Return (width, height) of the image once `transform` is applied."""
    if swaps_axes(transform):
        return height, width
    return width, height


def rotation_degrees(transform: Transform) -> int:
    return transform.rotate_steps * 90


def compose(first: Transform, second: Transform) -> Transform:
    """Combine two transforms; `second` is applied after `first`.

    An odd number of quarter turns in `second` exchanges what "horizontal"
    and "vertical" mean for the flips already in `first`, so first's flip
    pair is swapped before being XOR-ed with second's flags.
    """
    flip_h_, flip_v_ = first.flip_h, first.flip_v
    if swaps_axes(second):
        flip_h_, flip_v_ = flip_v_, flip_h_

    return Transform(
        rotate_steps=(first.rotate_steps + second.rotate_steps) % 4,
        flip_h=flip_h_ != second.flip_h,
        flip_v=flip_v_ != second.flip_v,
    )


def to_pil_operations(transform: Transform) -> list[Image.Transpose]:
    """Ordered Pillow transpose operations realising `transform`.

    Rotation first, then horizontal flip, then vertical flip.
    """
    ops: list[Image.Transpose] = []
    if transform.rotate_steps in _PIL_ROTATIONS:
        ops.append(_PIL_ROTATIONS[transform.rotate_steps])
    if transform.flip_h:
        ops.append(Image.Transpose.FLIP_LEFT_RIGHT)
    if transform.flip_v:
        ops.append(Image.Transpose.FLIP_TOP_BOTTOM)
    return ops

