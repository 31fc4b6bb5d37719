"""Byte ↔ MiB conversion. 1 MiB = 1,048,576 bytes (2^20)."""
import math
import re

BYTES_PER_MIB = 1_048_576

_MIB_SUFFIX = re.compile(r"\s*MiB$", re.IGNORECASE)


def bytes_to_mib(n_bytes: float) -> float:
    if n_bytes < 0:
        raise ValueError("bytes cannot be negative")
    return n_bytes / BYTES_PER_MIB


def mib_to_bytes(mib: float) -> int:
    if mib < 0:
        raise ValueError("MiB cannot be negative")
    return round(mib * BYTES_PER_MIB)


def format_mib(n_bytes: float) -> str:
    """'2.3 MiB', one decimal place."""
    return f"{bytes_to_mib(n_bytes):.1f} MiB"


def parse_mib_string(text: str) -> int | None:
    """Parse '2.3 MiB' or '2.3' into bytes; None for anything unparsable or negative."""
    cleaned = _MIB_SUFFIX.sub("", text.strip())
    try:
        mib = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(mib) or mib < 0:
        return None
    return mib_to_bytes(mib)
