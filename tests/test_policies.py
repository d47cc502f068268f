from math import isclose

import pytest

from stockestimate.config import DefaultConfig
from stockestimate.domain.models import CRITICAL, LOW, OK, WARNING
from stockestimate.domain.policies import (
    apply_gap_rule, classify_status, purchase_quantity, round_up_to_multiple, status_by_days,
)


@pytest.mark.parametrize(
    "days,expected",
    [(0.0, CRITICAL), (3.0, CRITICAL), (3.5, WARNING), (10.0, WARNING), (15.0, LOW), (20.0, LOW), (21.0, OK)],
)
def test_status_by_days(days, expected):
    assert status_by_days(days) == expected


def test_status_by_days_custom_limits():
    limits = DefaultConfig(critical_days=1, warning_days=2, low_days=3)
    assert status_by_days(2.5, limits) == LOW


@pytest.mark.parametrize("status", [CRITICAL, WARNING, LOW])
def test_gap_rule_only_touches_ok(status):
    assert apply_gap_rule(status, 5.0) == status


def test_gap_rule_upgrades_ok():
    assert apply_gap_rule(OK, 0.5) == WARNING
    assert apply_gap_rule(OK, 0.0) == OK
    assert classify_status(30.0, 2.0) == WARNING


def test_round_up_to_multiple():
    assert round_up_to_multiple(None, 5) is None
    assert isclose(round_up_to_multiple(11, 5), 15)
    assert isclose(round_up_to_multiple(11, None), 11)
    assert isclose(round_up_to_multiple(11, 0), 11)


def test_purchase_quantity():
    assert purchase_quantity(0) == 0.0
    assert purchase_quantity(-3) == 0.0
    assert purchase_quantity(19.2) == 20
    assert purchase_quantity(19.2, 25) == 25
