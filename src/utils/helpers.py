"""General helper functions used across the application."""

from __future__ import annotations

import secrets
import time


def generate_request_id() -> str:
    """Return a short, sortable identifier for one reply request."""
    millis = int(time.time() * 1000)
    return f"{_base36(millis)}{secrets.token_hex(3)}"


def elapsed_ms(started: float) -> int:
    """Milliseconds elapsed since ``started`` (a ``time.perf_counter`` value)."""
    return int((time.perf_counter() - started) * 1000)


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))
