import uuid
from datetime import timedelta

from sqlalchemy.orm import Session

from freight_market.core.clock import utcnow
from freight_market.db import SessionLocal, Base, engine
from freight_market.models.bid import Bid, BidStatus
from freight_market.models.load import Load, LoadStatus

DEMO_SHIPPER_ID = "shipper-demo"
DEMO_TRUCKERS = ("trucker-demo-1", "trucker-demo-2")


def create_tables() -> None:
    # Por si el esquema no está creado aún
    Base.metadata.create_all(bind=engine)


def seed_loads(db: Session) -> None:
    if db.query(Load).count() > 0:
        return

    now = utcnow()

    loads = [
        Load(
            id="L1",
            shipper_id=DEMO_SHIPPER_ID,
            title="Palets de fruta Lleida → Barcelona",
            description="20 palets refrigerados, carga lateral",
            pickup_address="Mercolleida, Lleida",
            pickup_lat=41.617,
            pickup_lon=0.620,
            delivery_address="Mercabarna, Barcelona",
            delivery_lat=41.332,
            delivery_lon=2.129,
            pickup_date=now + timedelta(days=2),
            delivery_date=now + timedelta(days=2, hours=6),
            weight=12000.0,
            dimensions={"length": 13.6, "width": 2.45, "height": 2.6},
            load_type="reefer",
            special_requirements=["temperatura 2-4ºC", "trampilla elevadora"],
            budget=850.0,
            bidding_deadline=now + timedelta(days=1),
            status=LoadStatus.OPEN.value,
        ),
        Load(
            id="L2",
            shipper_id=DEMO_SHIPPER_ID,
            title="Bobinas de acero Tarragona → Zaragoza",
            description="Carga completa en plataforma",
            pickup_address="Port de Tarragona",
            delivery_address="Plaza, Zaragoza",
            pickup_date=now + timedelta(days=5),
            delivery_date=now + timedelta(days=5, hours=8),
            weight=24000.0,
            load_type="flatbed",
            special_requirements=[],
            budget=1200.0,
            bidding_deadline=now + timedelta(days=3),
            status=LoadStatus.PENDING.value,
        ),
    ]

    db.add_all(loads)
    db.commit()


def seed_bids(db: Session) -> None:
    if db.query(Bid).count() > 0:
        return

    bids = [
        Bid(
            id=str(uuid.uuid4()),
            load_id="L1",
            trucker_id=trucker_id,
            amount=amount,
            notes="Disponible desde primera hora",
            status=BidStatus.PENDING.value,
        )
        for trucker_id, amount in zip(DEMO_TRUCKERS, (820.0, 790.0))
    ]

    db.add_all(bids)
    db.commit()


def main() -> None:
    create_tables()
    db = SessionLocal()
    try:
        seed_loads(db)
        seed_bids(db)
        print("✅ Seed completado: loads y bids.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
