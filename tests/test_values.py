from datetime import date, datetime

import pytest

from stockestimate.adapters.formatting import format_days, format_short_date
from stockestimate.domain.values import (
    format_quantity, parse_date, to_float,
)


@pytest.mark.parametrize(
    "val,expected",
    [
        ("30", 30.0),
        ("2,5", 2.5),
        (" 12.75 ", 12.75),
        (7, 7.0),
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        (True, 0.0),
    ],
)
def test_to_float(val, expected):
    assert to_float(val) == expected


@pytest.mark.parametrize(
    "val,expected",
    [
        ("2025-03-05", date(2025, 3, 5)),
        ("2025-03-05T18:30:00", date(2025, 3, 5)),
        ("05/03/2025", date(2025, 3, 5)),
        (datetime(2025, 3, 5, 23, 0), date(2025, 3, 5)),
        (date(2025, 3, 5), date(2025, 3, 5)),
        ("", None),
        (None, None),
        ("soon", None),
    ],
)
def test_parse_date(val, expected):
    assert parse_date(val) == expected


def test_format_helpers():
    assert format_quantity(1500) == "1,500"
    assert format_quantity(1500.25) == "1,500.25"
    assert format_days(3.0) == "3.0"
    assert format_days(float("inf")) == "—"
    assert format_short_date(date(2025, 3, 5)) == "Mar 5"
    assert format_short_date(None) == "—"
