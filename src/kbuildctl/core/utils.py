"""
Utility functions shared across modules: sizes, durations.
"""

import math


def human_size(n_bytes: int) -> str:
    """
    Format a byte count the way `du -h` does: 512B, 4.0K, 18M, 1.2G.
    Values are rounded up; one decimal is kept below 10.
    """
    if n_bytes < 1024:
        return f"{n_bytes}B"
    value = float(n_bytes)
    for unit in ("K", "M", "G", "T"):
        value /= 1024
        tenths = math.ceil(value * 10) / 10
        if tenths < 10:
            return f"{tenths:.1f}{unit}"
        whole = math.ceil(value)
        # 1023.9K rounds up to 1024K, which du reports as 1.0M
        if whole < 1024 or unit == "T":
            return f"{whole}{unit}"
    return f"{n_bytes}B"


def format_duration(seconds: float) -> str:
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    return f"{minutes}m {secs}s"
