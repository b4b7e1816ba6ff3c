from datetime import timedelta

import pytest

from freight_market.core.clock import utcnow
from freight_market.core.errors import Conflict
from freight_market.models.bid import Bid, BidStatus
from freight_market.models.load import LoadStatus
from freight_market.services import bid_store, load_store

from .conftest import TRUCKER_A, TRUCKER_B


def test_transition_status_only_applies_from_allowed_sources(db, make_load):
    load = make_load(status="pending")

    assert load_store.transition_status(db, load.id, LoadStatus.OPEN)
    # open -> in_transit se salta assigned
    assert not load_store.transition_status(db, load.id, LoadStatus.IN_TRANSIT)
    db.commit()

    assert load_store.get_load(db, load.id).status == "open"


def test_assign_is_compare_and_set(db, make_load):
    load = make_load()
    now = utcnow()

    assert load_store.assign(db, load.id, TRUCKER_A, "bid-a", now)
    assert not load_store.assign(db, load.id, TRUCKER_B, "bid-b", now)
    db.commit()

    load = load_store.get_load(db, load.id)
    assert load.status == "assigned"
    assert load.assigned_trucker_id == TRUCKER_A
    assert load.accepted_bid_id == "bid-a"


def test_assign_refuses_after_deadline(db, make_load):
    load = make_load()

    assert not load_store.assign(
        db, load.id, TRUCKER_A, "bid-a", load.bidding_deadline + timedelta(seconds=1)
    )


def test_update_fields_cannot_set_arbitrary_status(db, make_load):
    load = make_load()

    with pytest.raises(ValueError):
        load_store.update_fields(db, load.id, {"status": "completed"})


def test_insert_bid_translates_duplicate_into_conflict(db, make_load, make_bid):
    load = make_load()
    make_bid(load.id, TRUCKER_A)

    duplicate = Bid(
        id="dup",
        load_id=load.id,
        trucker_id=TRUCKER_A,
        amount=50.0,
        status=BidStatus.PENDING.value,
    )
    with pytest.raises(Conflict):
        bid_store.insert_bid(db, duplicate)
    db.rollback()

    assert len(bid_store.list_for_load(db, load.id)) == 1


def test_set_status_respects_allowed_sources(db, make_load, make_bid):
    bid = make_bid(make_load().id)

    assert not bid_store.set_status(db, bid.id, BidStatus.WITHDRAWN, {BidStatus.ACCEPTED})
    assert bid_store.set_status(db, bid.id, BidStatus.WITHDRAWN, {BidStatus.PENDING})


def test_list_for_load_is_cheapest_first(db, make_load, make_bid):
    load = make_load()
    make_bid(load.id, TRUCKER_A, amount=300.0)
    make_bid(load.id, TRUCKER_B, amount=120.0)

    amounts = [b.amount for b in bid_store.list_for_load(db, load.id)]
    assert amounts == [120.0, 300.0]
