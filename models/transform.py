from pydantic import BaseModel, ConfigDict, field_validator


class Transform(BaseModel):
    """Orientation adjustment: `rotate_steps` clockwise 90° turns, then optional flips.

    Frozen; operations in `engine.transform_algebra` return new instances.
    """

    model_config = ConfigDict(frozen=True)

    rotate_steps: int = 0
    flip_h: bool = False
    flip_v: bool = False

    @field_validator("rotate_steps")
    @classmethod
    def steps_in_quarter_turns(cls, v: int) -> int:
        if v not in (0, 1, 2, 3):
            raise ValueError("rotate_steps must be 0, 1, 2 or 3")
        return v

    @classmethod
    def normalized(cls, rotate_steps: int, flip_h: bool = False, flip_v: bool = False) -> "Transform":
        """Build a Transform from any integer step count (taken mod 4)."""
        return cls(rotate_steps=rotate_steps % 4, flip_h=flip_h, flip_v=flip_v)
