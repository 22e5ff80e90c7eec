from __future__ import annotations

_MULTIPLIERS = {"B": 1, "K": 1024, "M": 1024**2, "G": 1024**3, "T": 1024**4, "P": 1024**5, "E": 1024**6}
_UNITS_DESCENDING = ("E", "P", "T", "G", "M", "K")


def parse_size(size_str: str) -> int:
    """Parse size string like '8M', '2G' or '4096' into bytes."""
    size_str = size_str.strip().upper()
    if size_str.endswith("IB"):
        size_str = size_str[:-2]
    elif size_str.endswith("B") and len(size_str) > 1 and size_str[-2] in _MULTIPLIERS:
        size_str = size_str[:-1]
    if not size_str:
        raise ValueError("empty size")
    if size_str[-1] in _MULTIPLIERS:
        return int(float(size_str[:-1]) * _MULTIPLIERS[size_str[-1]])
    return int(size_str)


def format_size(num_bytes: int) -> str:
    """Render a byte count with one decimal and a binary unit suffix, e.g. '8M'."""
    if num_bytes == 0:
        return "0B"
    for unit in _UNITS_DESCENDING:
        multiplier = _MULTIPLIERS[unit]
        if num_bytes >= multiplier:
            value = num_bytes / multiplier
            break
    else:
        unit, value = "B", float(num_bytes)
    text = f"{value:.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text}{unit}"


def format_duration(seconds: float) -> str:
    """Format duration for display: '1.234s', '12ms', '345µs', '1m2.5s'."""
    if seconds <= 0:
        return "0s"
    if seconds < 1e-3:
        return f"{_trim(seconds * 1e6)}µs"
    if seconds < 1:
        return f"{_trim(seconds * 1e3)}ms"
    if seconds < 60:
        return f"{_trim(seconds)}s"
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    prefix = f"{hours}h{minutes}m" if hours else f"{minutes}m"
    return f"{prefix}{_trim(secs)}s"


def _trim(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return text or "0"
