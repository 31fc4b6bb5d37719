"""Tests for orientation transform algebra."""
import itertools

import pytest
from PIL import Image
from pydantic import ValidationError

from engine.transform_algebra import (
    compose,
    dimensions_after,
    flip_h,
    flip_v,
    identity,
    is_identity,
    rotate_ccw,
    rotate_cw,
    rotation_degrees,
    to_pil_operations,
    transforms_equal,
)
from models.transform import Transform

ALL_TRANSFORMS = [
    Transform(rotate_steps=s, flip_h=h, flip_v=v)
    for s, h, v in itertools.product(range(4), (False, True), (False, True))
]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_identity(self):
        t = identity()
        assert t == Transform(rotate_steps=0, flip_h=False, flip_v=False)
        assert is_identity(t)

    def test_steps_outside_range_rejected(self):
        with pytest.raises(ValidationError):
            Transform(rotate_steps=4)
        with pytest.raises(ValidationError):
            Transform(rotate_steps=-1)

    def test_normalized_takes_steps_mod_4(self):
        assert Transform.normalized(5).rotate_steps == 1
        assert Transform.normalized(-1).rotate_steps == 3

    def test_frozen(self):
        t = identity()
        with pytest.raises(ValidationError):
            t.rotate_steps = 1


# ---------------------------------------------------------------------------
# Rotation & flips
# ---------------------------------------------------------------------------

class TestRotateFlip:
    def test_rotate_cw_from_identity(self):
        assert rotate_cw(Transform(rotate_steps=0)) == Transform(rotate_steps=1)

    def test_rotate_cw_wraps(self):
        assert rotate_cw(Transform(rotate_steps=3)).rotate_steps == 0

    def test_rotate_ccw_wraps(self):
        assert rotate_ccw(Transform(rotate_steps=0)).rotate_steps == 3

    @pytest.mark.parametrize("t", ALL_TRANSFORMS)
    def test_cw_ccw_are_inverses(self, t):
        assert rotate_ccw(rotate_cw(t)) == t
        assert rotate_cw(rotate_ccw(t)) == t

    def test_rotation_preserves_flips(self):
        t = Transform(rotate_steps=1, flip_h=True, flip_v=False)
        r = rotate_cw(t)
        assert r.flip_h is True
        assert r.flip_v is False

    def test_four_cw_turns_is_identity(self):
        t = identity()
        for _ in range(4):
            t = rotate_cw(t)
        assert is_identity(t)

    def test_flip_h_toggles_only_horizontal(self):
        t = flip_h(identity())
        assert t.flip_h is True
        assert t.flip_v is False
        assert flip_h(t) == identity()

    def test_flip_v_toggles_only_vertical(self):
        t = flip_v(identity())
        assert t.flip_v is True
        assert t.flip_h is False

    def test_operations_return_new_values(self):
        t = identity()
        rotate_cw(t)
        flip_h(t)
        assert is_identity(t)

    def test_rotation_degrees(self):
        assert rotation_degrees(Transform(rotate_steps=3)) == 270


# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

class TestDimensionsAfter:
    def test_quarter_turn_swaps(self):
        assert dimensions_after(800, 600, Transform(rotate_steps=1)) == (600, 800)

    @pytest.mark.parametrize("t", ALL_TRANSFORMS)
    def test_swaps_iff_odd_steps_and_preserves_area(self, t):
        w, h = dimensions_after(800, 600, t)
        swapped = (w, h) == (600, 800)
        assert swapped == (t.rotate_steps in (1, 3))
        assert w * h == 800 * 600

    def test_flips_do_not_swap(self):
        assert dimensions_after(800, 600, Transform(flip_h=True, flip_v=True)) == (800, 600)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

class TestCompose:
    def test_identity_is_neutral(self):
        for t in ALL_TRANSFORMS:
            assert compose(identity(), t) == t
            assert compose(t, identity()) == t

    def test_rotations_add_mod_4(self):
        a = Transform(rotate_steps=3)
        b = Transform(rotate_steps=2)
        assert compose(a, b).rotate_steps == 1

    def test_odd_rotation_swaps_existing_flips(self):
        first = Transform(flip_h=True)
        second = Transform(rotate_steps=1)
        assert compose(first, second) == Transform(rotate_steps=1, flip_h=False, flip_v=True)

    def test_half_turn_keeps_flip_axes(self):
        first = Transform(flip_h=True)
        second = Transform(rotate_steps=2)
        assert compose(first, second) == Transform(rotate_steps=2, flip_h=True, flip_v=False)

    def test_flips_xor(self):
        first = Transform(flip_h=True)
        second = Transform(flip_h=True, flip_v=True)
        assert compose(first, second) == Transform(flip_h=False, flip_v=True)

    def test_swap_happens_before_xor(self):
        first = Transform(flip_h=True)
        second = Transform(rotate_steps=3, flip_v=True)
        # first's flip_h becomes flip_v, then XOR with second's flip_v cancels it
        assert compose(first, second) == Transform(rotate_steps=3, flip_h=False, flip_v=False)


# ---------------------------------------------------------------------------
# Equality & Pillow mapping
# ---------------------------------------------------------------------------

class TestEqualityAndPil:
    def test_transforms_equal_is_structural(self):
        a = Transform(rotate_steps=2, flip_v=True)
        b = Transform(rotate_steps=2, flip_v=True)
        assert a is not b
        assert transforms_equal(a, b)
        assert not transforms_equal(a, rotate_cw(b))

    def test_identity_has_no_pil_operations(self):
        assert to_pil_operations(identity()) == []

    def test_cw_quarter_turn_is_pil_rotate_270(self):
        assert to_pil_operations(Transform(rotate_steps=1)) == [Image.Transpose.ROTATE_270]

    def test_rotation_then_flips(self):
        ops = to_pil_operations(Transform(rotate_steps=2, flip_h=True, flip_v=True))
        assert ops == [
            Image.Transpose.ROTATE_180,
            Image.Transpose.FLIP_LEFT_RIGHT,
            Image.Transpose.FLIP_TOP_BOTTOM,
        ]

    def test_pil_operations_rotate_clockwise(self):
        # Red pixel in the top-left corner ends up top-right after one CW turn
        img = Image.new("RGB", (4, 2), "black")
        img.putpixel((0, 0), (255, 0, 0))
        for op in to_pil_operations(Transform(rotate_steps=1)):
            img = img.transpose(op)
        assert img.size == (2, 4)
        assert img.getpixel((1, 0)) == (255, 0, 0)
