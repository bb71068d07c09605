from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from perfgate.core.rounding import bytes_to_kb, format_value, round_value


def test_units_round_half_up_to_their_precision() -> None:
    assert round_value(1234.5, "ms") == 1235
    assert round_value(1234.4999, "ms") == 1234
    assert round_value(0.0805, "score") == 0.081
    assert round_value(12.345, "%") == 12.35
    assert round_value(499.995, "KB") == 500.0


def test_kilobytes_are_bytes_over_1024() -> None:
    assert bytes_to_kb(512000) == 500.0
    assert bytes_to_kb(1536) == 1.5
    assert bytes_to_kb(0) == 0.0


def test_format_value_strips_trailing_zeros() -> None:
    assert format_value(2600.0, "ms") == "2600ms"
    assert format_value(450.5, "KB") == "450.5KB"
    assert format_value(0.1, "score") == "0.1"
    assert format_value(None, "ms") == "n/a"


@pytest.mark.unit
@given(
    st.floats(min_value=0, max_value=1_000_000, allow_nan=False, allow_infinity=False),
    st.sampled_from(["ms", "KB", "%", "score"]),
)
def test_rounding_is_idempotent(value: float, unit: str) -> None:
    once = round_value(value, unit)
    assert round_value(once, unit) == once
