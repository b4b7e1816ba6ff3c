from datetime import timedelta
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import freight_market.models  # noqa: F401
from freight_market.core.clock import utcnow
from freight_market.db import Base, get_db, make_engine
from freight_market.main import app
from freight_market.schemas.bid import BidCreate
from freight_market.schemas.load import LoadCreate
from freight_market.services import bidding_service, load_service

SHIPPER = "shipper-1"
OTHER_SHIPPER = "shipper-2"
TRUCKER_A = "trucker-a"
TRUCKER_B = "trucker-b"
TRUCKER_C = "trucker-c"


def headers(actor_id: str, role: str) -> Dict[str, str]:
    return {"X-Actor-Id": actor_id, "X-Actor-Role": role}


def shipper_headers(actor_id: str = SHIPPER) -> Dict[str, str]:
    return headers(actor_id, "shipper")


def trucker_headers(actor_id: str = TRUCKER_A) -> Dict[str, str]:
    return headers(actor_id, "trucker")


def load_fields(**overrides) -> dict:
    now = utcnow()
    fields = dict(
        title="Palets Lleida → Barcelona",
        description="20 palets",
        pickup_address="Lleida",
        delivery_address="Barcelona",
        pickup_date=now + timedelta(days=2),
        delivery_date=now + timedelta(days=3),
        weight=12000.0,
        load_type="reefer",
        special_requirements=["frío", "trampilla"],
        budget=900.0,
        bidding_deadline=now + timedelta(hours=1),
        status="open",
    )
    fields.update(overrides)
    return fields


def load_payload(**overrides) -> dict:
    """Mismo contenido que ``load_fields`` pero serializado como lo manda el frontend."""
    return LoadCreate(**load_fields(**overrides)).model_dump(mode="json", by_alias=True)


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_load(db):
    def _make(shipper_id: str = SHIPPER, **overrides):
        return load_service.create_load(db, shipper_id, LoadCreate(**load_fields(**overrides)))

    return _make


@pytest.fixture
def make_bid(db):
    def _make(load_id: str, trucker_id: str = TRUCKER_A, amount: float = 100.0, **kwargs):
        return bidding_service.place_bid(
            db,
            trucker_id,
            BidCreate(load=load_id, amount=amount, **kwargs),
        )

    return _make
