from datetime import timedelta

import pytest

from freight_market.core.clock import utcnow
from freight_market.models.load import (
    EDITABLE_STATUSES,
    TERMINAL_STATUSES,
    Load,
    LoadStatus,
    can_transition,
)


@pytest.mark.parametrize(
    "current,target",
    [
        ("pending", LoadStatus.OPEN),
        ("open", LoadStatus.ASSIGNED),
        ("assigned", LoadStatus.IN_TRANSIT),
        ("in_transit", LoadStatus.DELIVERED),
        ("delivered", LoadStatus.COMPLETED),
        ("assigned", LoadStatus.CANCELLED),
    ],
)
def test_forward_transitions_are_allowed(current, target):
    assert can_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        ("in_transit", LoadStatus.OPEN),
        ("assigned", LoadStatus.OPEN),
        ("assigned", LoadStatus.DELIVERED),
        ("open", LoadStatus.IN_TRANSIT),
        ("delivered", LoadStatus.CANCELLED),
        ("completed", LoadStatus.CANCELLED),
        ("cancelled", LoadStatus.OPEN),
    ],
)
def test_backwards_and_skipping_transitions_are_refused(current, target):
    assert not can_transition(current, target)


def test_terminal_statuses_have_no_way_out():
    for terminal in TERMINAL_STATUSES:
        for target in LoadStatus:
            assert not can_transition(terminal.value, target)


def test_editable_statuses_are_pre_assignment():
    assert EDITABLE_STATUSES == {LoadStatus.PENDING, LoadStatus.OPEN}


def test_open_for_bidding_needs_status_and_deadline():
    now = utcnow()
    load = Load(status="open", bidding_deadline=now + timedelta(minutes=5))

    assert load.is_open_for_bidding(now)
    assert not load.is_open_for_bidding(now + timedelta(minutes=5))

    load.status = "pending"
    assert not load.is_open_for_bidding(now)
