"""Utility functions for the Exam-AI backend."""

import math
from datetime import datetime, timezone
from typing import Any, Tuple, Union


def as_text(value: Any) -> str:
    """
    Coerce a loosely typed JSON value to text.

    None becomes "", integral floats lose their ".0", lists are comma-joined
    (so ["A", "C"] reads the same as "A,C").
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (list, tuple)):
        return ",".join(as_text(v) for v in value)
    if isinstance(value, dict):
        return ""
    return str(value)


def coerce_marks(value: Any) -> Union[int, float]:
    """Marks for a question; missing, non-numeric or below-one values count as 1."""
    if isinstance(value, bool):
        return 1
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if math.isnan(number) or math.isinf(number) or number < 1:
        return 1
    return int(number) if number.is_integer() else number


def now_iso() -> str:
    """UTC timestamp like 2026-10-19T08:30:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def limit_lines(text: Any, max_lines: int) -> str:
    """Keep the first `max_lines` non-empty, stripped lines of a reply."""
    lines = [line.strip() for line in as_text(text).split("\n")]
    return "\n".join([line for line in lines if line][:max_lines])


def validate_file_size(file_bytes: bytes, max_size_mb: int) -> Tuple[bool, str]:
    """Validate file size in MB."""
    file_size_mb = len(file_bytes) / (1024 * 1024)

    if file_size_mb > max_size_mb:
        return False, f"File size {file_size_mb:.1f} MB exceeds limit of {max_size_mb} MB"

    return True, "OK"


def drive_query_literal(value: str) -> str:
    """Escape a value for use inside a quoted Drive search query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")
