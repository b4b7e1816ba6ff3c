import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from freight_market.core.actors import Actor, Role
from freight_market.core.clock import utcnow
from freight_market.core.errors import Forbidden, InvalidState, NotFound
from freight_market.core.logging import get_logger
from freight_market.db import atomic
from freight_market.models.bid import Bid, BidStatus
from freight_market.models.load import LoadStatus
from freight_market.schemas.bid import BidCreate, BidUpdate
from freight_market.services import bid_store, load_store

logger = get_logger(module="bidding_service")

# Estados desde los que el camionero todavía puede editar su puja
EDITABLE_BID_STATUSES = frozenset({BidStatus.PENDING, BidStatus.WITHDRAWN})


def _owned_bid(db: Session, bid_id: str, trucker_id: str, action: str) -> Bid:
    bid = bid_store.get_bid(db, bid_id)
    if not bid:
        raise NotFound(f"Bid not found with id of {bid_id}")
    if bid.trucker_id != trucker_id:
        logger.warning(
            "Camionero sin permiso sobre la puja",
            bid_id=bid_id,
            trucker_id=trucker_id,
            action=action,
        )
        raise Forbidden(f"Not authorized to {action} this bid")
    return bid


def place_bid(
    db: Session,
    trucker_id: str,
    bid_in: BidCreate,
    now: Optional[datetime] = None,
) -> Bid:
    now = now or utcnow()

    with atomic(db):
        load = load_store.get_load_for_update(db, bid_in.load)
        if not load:
            raise NotFound(f"Load not found with id of {bid_in.load}")

        if not load.is_open_for_bidding(now):
            logger.warning(
                "Puja sobre carga cerrada",
                load_id=load.id,
                status=load.status,
                deadline=str(load.bidding_deadline),
            )
            raise InvalidState("This load is not open for bidding")

        bid = Bid(
            id=str(uuid.uuid4()),
            load_id=load.id,
            trucker_id=trucker_id,
            status=BidStatus.PENDING.value,
            created_at=now,
            **bid_in.model_dump(exclude={"load"}),
        )
        bid_store.insert_bid(db, bid)

        # Ya con la fila escrita: si entretanto otra petición asignó la
        # carga, esta puja no debe quedarse colgando
        db.refresh(load)
        if load.status != LoadStatus.OPEN.value:
            raise InvalidState("This load is not open for bidding")

    db.refresh(bid)
    logger.info(
        "Puja creada",
        bid_id=bid.id,
        load_id=bid.load_id,
        trucker_id=trucker_id,
        amount=bid.amount,
    )
    return bid


def update_bid(
    db: Session,
    bid_id: str,
    trucker_id: str,
    bid_in: BidUpdate,
    now: Optional[datetime] = None,
) -> Bid:
    now = now or utcnow()

    with atomic(db):
        bid = _owned_bid(db, bid_id, trucker_id, "update")

        if bid.is_final:
            raise InvalidState(f"Cannot update a bid that has been {bid.status}")

        load = load_store.get_load_for_update(db, bid.load_id)
        if not load or not load.is_open_for_bidding(now):
            raise InvalidState("The load is no longer open for bidding")

        values = bid_in.model_dump(exclude_unset=True)
        if values and not bid_store.update_fields(db, bid.id, values, EDITABLE_BID_STATUSES):
            # Aceptada/rechazada entre la lectura y el UPDATE
            raise InvalidState("Cannot update a bid that has been accepted or rejected")

    db.refresh(bid)
    logger.info(
        "Puja actualizada",
        bid_id=bid_id,
        fields=sorted(values),
    )
    return bid


def withdraw_bid(db: Session, bid_id: str, trucker_id: str) -> Bid:
    with atomic(db):
        bid = _owned_bid(db, bid_id, trucker_id, "withdraw")

        if bid.status == BidStatus.WITHDRAWN.value:
            return bid
        if bid.is_final:
            raise InvalidState(f"Cannot withdraw a bid that has been {bid.status}")

        if not bid_store.set_status(db, bid.id, BidStatus.WITHDRAWN, {BidStatus.PENDING}):
            raise InvalidState("Cannot withdraw a bid that has been accepted or rejected")

    db.refresh(bid)
    logger.info("Puja retirada", bid_id=bid_id, trucker_id=trucker_id)
    return bid


# ---- consultas ----

def get_bid_for_actor(db: Session, bid_id: str, actor: Actor) -> Bid:
    bid = bid_store.get_bid(db, bid_id)
    if not bid:
        raise NotFound(f"Bid not found with id of {bid_id}")

    if actor.role == Role.SHIPPER:
        load = load_store.get_load(db, bid.load_id)
        if not load or load.shipper_id != actor.id:
            raise Forbidden("Not authorized to view this bid")
    elif actor.role == Role.TRUCKER and bid.trucker_id != actor.id:
        raise Forbidden("Not authorized to view this bid")

    return bid


def list_bids_for_load(db: Session, load_id: str, actor: Actor) -> List[Bid]:
    load = load_store.get_load(db, load_id)
    if not load:
        raise NotFound(f"Load not found with id of {load_id}")

    if actor.role == Role.SHIPPER and load.shipper_id != actor.id:
        raise Forbidden("Not authorized to view bids for this load")

    # El camionero solo ve la suya
    if actor.role == Role.TRUCKER:
        bid = bid_store.find_for_trucker_on_load(db, load_id, actor.id)
        return [bid] if bid else []

    return bid_store.list_for_load(db, load_id)


def list_trucker_bids(db: Session, trucker_id: str) -> List[Bid]:
    return bid_store.list_for_trucker(db, trucker_id)
