"""
Acceso a la tabla ``bids``.

La unicidad (carga, camionero) la garantiza la constraint
``uq_bids_load_trucker``; aquí solo se traduce el ``IntegrityError``.
Los cambios de estado son compare-and-set igual que en ``load_store``.
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from freight_market.core.errors import Conflict
from freight_market.core.logging import get_logger
from freight_market.models.bid import Bid, BidStatus

logger = get_logger(module="bid_store")


def _values(statuses: Iterable[BidStatus]) -> List[str]:
    return [s.value for s in statuses]


def get_bid(db: Session, bid_id: str) -> Optional[Bid]:
    return db.get(Bid, bid_id)


def insert_bid(db: Session, bid: Bid) -> Bid:
    """
    Inserta la puja y hace flush para que salte la constraint ya.
    Ante duplicado lanza ``Conflict``; el rollback lo hace quien abrió la
    transacción (``atomic``).
    """
    db.add(bid)
    try:
        db.flush()
    except IntegrityError:
        logger.warning(
            "Puja duplicada rechazada por la constraint",
            load_id=bid.load_id,
            trucker_id=bid.trucker_id,
        )
        raise Conflict("You have already placed a bid on this load")
    return bid


def set_status(
    db: Session,
    bid_id: str,
    target: BidStatus,
    allowed_from: Iterable[BidStatus],
) -> bool:
    result = db.execute(
        update(Bid)
        .where(Bid.id == bid_id, Bid.status.in_(_values(allowed_from)))
        .values(status=target.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def update_fields(
    db: Session,
    bid_id: str,
    values: Dict[str, Any],
    allowed_from: Iterable[BidStatus],
) -> bool:
    if "status" in values:
        raise ValueError("bid status is changed through set_status only")

    result = db.execute(
        update(Bid)
        .where(Bid.id == bid_id, Bid.status.in_(_values(allowed_from)))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def reject_siblings(db: Session, load_id: str, accepted_bid_id: str) -> int:
    result = db.execute(
        update(Bid)
        .where(Bid.load_id == load_id, Bid.id != accepted_bid_id)
        .values(status=BidStatus.REJECTED.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def reject_all_for_load(db: Session, load_id: str) -> int:
    result = db.execute(
        update(Bid)
        .where(Bid.load_id == load_id)
        .values(status=BidStatus.REJECTED.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def list_for_load(db: Session, load_id: str) -> List[Bid]:
    # Más barata primero
    stmt = select(Bid).where(Bid.load_id == load_id).order_by(Bid.amount.asc())
    return list(db.execute(stmt).scalars().all())


def list_for_trucker(db: Session, trucker_id: str) -> List[Bid]:
    stmt = (
        select(Bid)
        .where(Bid.trucker_id == trucker_id)
        .order_by(Bid.created_at.desc())
    )
    return list(db.execute(stmt).scalars().all())


def find_for_trucker_on_load(db: Session, load_id: str, trucker_id: str) -> Optional[Bid]:
    stmt = select(Bid).where(Bid.load_id == load_id, Bid.trucker_id == trucker_id)
    return db.execute(stmt).scalars().first()
