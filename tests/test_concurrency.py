"""
Carreras reales contra un SQLite en fichero: cada hilo/sesión tiene su propia
conexión, así que las guardas de los UPDATE son las que deciden.
"""
import threading

import pytest
from sqlalchemy.orm import sessionmaker

import freight_market.models  # noqa: F401
from freight_market.core.errors import Conflict, DomainError, InvalidState
from freight_market.db import Base, make_engine
from freight_market.models.bid import Bid
from freight_market.models.load import Load
from freight_market.schemas.bid import BidCreate
from freight_market.schemas.load import LoadCreate
from freight_market.services import assignment_service, bidding_service, load_service

from .conftest import SHIPPER, TRUCKER_A, TRUCKER_B, TRUCKER_C, load_fields


@pytest.fixture
def file_sessions(tmp_path):
    engine = make_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False)
    engine.dispose()


@pytest.fixture
def open_load_with_bids(file_sessions):
    db = file_sessions()
    try:
        load = load_service.create_load(db, SHIPPER, LoadCreate(**load_fields()))
        bids = [
            bidding_service.place_bid(db, trucker, BidCreate(load=load.id, amount=amount))
            for trucker, amount in ((TRUCKER_A, 500.0), (TRUCKER_B, 450.0))
        ]
        return load.id, [b.id for b in bids]
    finally:
        db.close()


def _run_together(session_factory, calls):
    """Lanza cada ``call(db)`` en su hilo, a la vez; devuelve resultados o excepciones."""
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(index, call):
        db = session_factory()
        try:
            barrier.wait()
            outcomes[index] = call(db)
        except DomainError as exc:
            outcomes[index] = exc
        finally:
            db.close()

    threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def test_stale_session_cannot_accept_second_bid(file_sessions, open_load_with_bids):
    load_id, (bid_a, bid_b) = open_load_with_bids
    first = file_sessions()
    second = file_sessions()
    try:
        # las dos sesiones ven la carga abierta antes de actuar
        assert first.get(Load, load_id).status == "open"
        assert second.get(Load, load_id).status == "open"
        assert second.get(Bid, bid_b).status == "pending"

        assignment_service.accept_bid(first, bid_a, SHIPPER)

        with pytest.raises(InvalidState):
            assignment_service.accept_bid(second, bid_b, SHIPPER)
    finally:
        first.close()
        second.close()

    db = file_sessions()
    try:
        load = db.get(Load, load_id)
        assert load.accepted_bid_id == bid_a
        assert db.get(Bid, bid_a).status == "accepted"
        assert db.get(Bid, bid_b).status == "rejected"
    finally:
        db.close()


def test_concurrent_accepts_leave_exactly_one_winner(file_sessions, open_load_with_bids):
    load_id, bid_ids = open_load_with_bids

    outcomes = _run_together(
        file_sessions,
        [
            lambda db, bid_id=bid_id: assignment_service.accept_bid(db, bid_id, SHIPPER)
            for bid_id in bid_ids
        ],
    )

    winners = [o for o in outcomes if isinstance(o, Bid)]
    losers = [o for o in outcomes if isinstance(o, InvalidState)]
    assert len(winners) == 1
    assert len(losers) == 1

    db = file_sessions()
    try:
        load = db.get(Load, load_id)
        assert load.status == "assigned"
        assert load.accepted_bid_id == winners[0].id
        accepted = db.query(Bid).filter(Bid.load_id == load_id, Bid.status == "accepted").count()
        assert accepted == 1
    finally:
        db.close()


def test_concurrent_duplicate_bids_keep_one(file_sessions):
    db = file_sessions()
    try:
        load_id = load_service.create_load(db, SHIPPER, LoadCreate(**load_fields())).id
    finally:
        db.close()

    outcomes = _run_together(
        file_sessions,
        [
            lambda db, amount=amount: bidding_service.place_bid(
                db, TRUCKER_A, BidCreate(load=load_id, amount=amount)
            )
            for amount in (300.0, 310.0)
        ],
    )

    assert len([o for o in outcomes if isinstance(o, Bid)]) == 1
    assert len([o for o in outcomes if isinstance(o, Conflict)]) == 1

    db = file_sessions()
    try:
        assert db.query(Bid).filter(Bid.load_id == load_id).count() == 1
    finally:
        db.close()


def test_bid_racing_an_acceptance_never_stays_pending(file_sessions, open_load_with_bids):
    load_id, (bid_a, _) = open_load_with_bids

    outcomes = _run_together(
        file_sessions,
        [
            lambda db: assignment_service.accept_bid(db, bid_a, SHIPPER),
            lambda db: bidding_service.place_bid(
                db, TRUCKER_C, BidCreate(load=load_id, amount=420.0)
            ),
        ],
    )

    accepted, late_bid = outcomes
    assert isinstance(accepted, Bid)
    # o entra antes de aceptar (y se rechaza con las demás) o no entra
    assert isinstance(late_bid, (Bid, InvalidState))

    db = file_sessions()
    try:
        load = db.get(Load, load_id)
        assert load.status == "assigned"
        assert load.accepted_bid_id == bid_a
        statuses = {b.trucker_id: b.status for b in db.query(Bid).filter(Bid.load_id == load_id)}
        assert "pending" not in statuses.values()
        assert statuses[TRUCKER_A] == "accepted"
        if isinstance(late_bid, InvalidState):
            assert TRUCKER_C not in statuses
        else:
            assert statuses[TRUCKER_C] == "rejected"
    finally:
        db.close()
