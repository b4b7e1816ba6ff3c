"""
Aceptación/rechazo de pujas y asignación de cargas.

Aceptar una puja toca tres cosas a la vez: la puja pasa a ``accepted``, la
carga queda ``assigned`` con camionero y puja fijados, y el resto de pujas de
la carga pasan a ``rejected``. Las tres van en la misma transacción: si
cualquiera falla no se confirma nada.

``accept_bid`` y ``assign_load`` son dos entradas a la misma operación
(``_assign``); ambas rechazan una carga que ya tiene camionero.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from freight_market.core.clock import utcnow
from freight_market.core.errors import Conflict, Forbidden, InvalidState, NotFound
from freight_market.core.logging import get_logger
from freight_market.db import atomic
from freight_market.models.bid import Bid, BidStatus
from freight_market.models.load import Load, LoadStatus
from freight_market.services import bid_store, load_store

logger = get_logger(module="assignment_service")

# Una puja retirada o rechazada ya no se puede aceptar
ACCEPTABLE_BID_STATUSES = frozenset({BidStatus.PENDING, BidStatus.ACCEPTED})
REJECTABLE_BID_STATUSES = frozenset({BidStatus.PENDING, BidStatus.WITHDRAWN})


def _locked_load(db: Session, load_id: str, message: str) -> Load:
    load = load_store.get_load_for_update(db, load_id)
    if not load:
        raise NotFound(message)
    return load


def _check_owner(load: Load, shipper_id: str, action: str) -> None:
    if load.shipper_id != shipper_id:
        logger.warning(
            "Shipper sin permiso sobre la carga",
            load_id=load.id,
            shipper_id=shipper_id,
            action=action,
        )
        raise Forbidden(f"Not authorized to {action}")


def _check_assignable(load: Load, bid: Bid, now: datetime) -> None:
    if load.status != LoadStatus.OPEN.value:
        raise InvalidState("Cannot accept bids for a load that is not open")
    if load.is_assigned:
        raise InvalidState("This load is already assigned to a trucker")
    if now >= load.bidding_deadline:
        raise InvalidState("The bidding deadline for this load has passed")
    if BidStatus(bid.status) not in ACCEPTABLE_BID_STATUSES:
        raise InvalidState(f"Cannot accept a bid that has been {bid.status}")


def _assign(db: Session, load: Load, bid: Bid, now: datetime) -> int:
    """Escritura coordinada; devuelve cuántas pujas hermanas se han rechazado."""
    if not load_store.assign(db, load.id, bid.trucker_id, bid.id, now):
        # Otra aceptación confirmó antes (o venció el plazo) tras nuestra lectura
        logger.warning("Asignación perdida por concurrencia", load_id=load.id, bid_id=bid.id)
        raise InvalidState("Cannot accept bids for a load that is not open")

    if not bid_store.set_status(db, bid.id, BidStatus.ACCEPTED, ACCEPTABLE_BID_STATUSES):
        # Retirada justo ahora: se deshace también la carga (rollback en atomic)
        raise InvalidState("Cannot accept a bid that has been withdrawn or rejected")

    return bid_store.reject_siblings(db, load.id, bid.id)


def accept_bid(
    db: Session,
    bid_id: str,
    shipper_id: str,
    now: Optional[datetime] = None,
) -> Bid:
    now = now or utcnow()

    with atomic(db):
        bid = bid_store.get_bid(db, bid_id)
        if not bid:
            raise NotFound(f"Bid not found with id of {bid_id}")

        load = _locked_load(db, bid.load_id, "Load not found for this bid")
        _check_owner(load, shipper_id, "accept this bid")
        _check_assignable(load, bid, now)
        rejected = _assign(db, load, bid, now)

    db.refresh(bid)
    logger.info(
        "Puja aceptada y carga asignada",
        bid_id=bid.id,
        load_id=bid.load_id,
        trucker_id=bid.trucker_id,
        rejected_bids=rejected,
    )
    return bid


def reject_bid(db: Session, bid_id: str, shipper_id: str) -> Bid:
    with atomic(db):
        bid = bid_store.get_bid(db, bid_id)
        if not bid:
            raise NotFound(f"Bid not found with id of {bid_id}")

        load = _locked_load(db, bid.load_id, "Load not found for this bid")
        _check_owner(load, shipper_id, "reject this bid")

        if load.status != LoadStatus.OPEN.value:
            raise InvalidState("Cannot reject bids for a load that is not open")
        if bid.status == BidStatus.ACCEPTED.value:
            raise InvalidState("Cannot reject a bid that has been accepted")
        if bid.status == BidStatus.REJECTED.value:
            return bid

        if not bid_store.set_status(db, bid.id, BidStatus.REJECTED, REJECTABLE_BID_STATUSES):
            raise InvalidState("Cannot reject a bid that has been accepted")

    db.refresh(bid)
    logger.info("Puja rechazada", bid_id=bid.id, load_id=bid.load_id)
    return bid


def assign_load(
    db: Session,
    load_id: str,
    shipper_id: str,
    bid_id: str,
    now: Optional[datetime] = None,
) -> Load:
    now = now or utcnow()

    with atomic(db):
        load = _locked_load(db, load_id, f"Load not found with id of {load_id}")
        _check_owner(load, shipper_id, "assign this load")

        if load.is_assigned:
            raise InvalidState("This load is already assigned to a trucker")

        bid = bid_store.get_bid(db, bid_id)
        if not bid:
            raise NotFound(f"Bid not found with id of {bid_id}")
        if bid.load_id != load.id:
            raise Conflict("Bid is not for this load")

        _check_assignable(load, bid, now)
        rejected = _assign(db, load, bid, now)

    db.refresh(load)
    logger.info(
        "Carga asignada",
        load_id=load.id,
        bid_id=bid_id,
        trucker_id=load.assigned_trucker_id,
        rejected_bids=rejected,
    )
    return load
