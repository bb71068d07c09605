"""Rounding rules applied to every sample before it is compared or persisted.

Half-up decimal rounding on the shortest repr of the float, so values that sit
exactly on a budget boundary compare the same way in every implementation.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

UNIT_PLACES: dict[str, int] = {
    "ms": 0,
    "KB": 2,
    "%": 2,
    "score": 3,
}


def round_value(value: float, unit: str) -> float:
    places = UNIT_PLACES.get(unit, 3)
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def bytes_to_kb(size_bytes: int) -> float:
    return round_value(size_bytes / 1024, "KB")


def format_value(value: float | None, unit: str = "") -> str:
    if value is None:
        return "n/a"
    places = UNIT_PLACES.get(unit, 3)
    text = f"{value:.{places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}{unit}" if unit not in {"", "score"} else text
