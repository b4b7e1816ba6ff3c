from typing import Optional

from sqlalchemy.orm import Session

from freight_market.core.errors import Forbidden, InvalidState, NotFound
from freight_market.core.logging import get_logger
from freight_market.db import atomic
from freight_market.models.load import Load, LoadStatus
from freight_market.models.tracking import TrackingStatus
from freight_market.services import bid_store, load_store

logger = get_logger(module="lifecycle_service")

# estado de tracking -> (estado de carga requerido, estado nuevo)
TRACKING_TRANSITIONS = {
    TrackingStatus.PICKED_UP: (LoadStatus.ASSIGNED, LoadStatus.IN_TRANSIT),
    TrackingStatus.DELIVERED: (LoadStatus.IN_TRANSIT, LoadStatus.DELIVERED),
}


def _get_load(db: Session, load_id: str) -> Load:
    load = load_store.get_load_for_update(db, load_id)
    if not load:
        raise NotFound(f"Load not found with id of {load_id}")
    return load


def _check_assigned_trucker(load: Load, trucker_id: str, message: str) -> None:
    if not load.assigned_trucker_id or load.assigned_trucker_id != trucker_id:
        logger.warning(
            "Camionero no asignado a la carga",
            load_id=load.id,
            trucker_id=trucker_id,
        )
        raise Forbidden(message)


def _check_owner(load: Load, shipper_id: str, message: str) -> None:
    if load.shipper_id != shipper_id:
        logger.warning("Shipper sin permiso sobre la carga", load_id=load.id, shipper_id=shipper_id)
        raise Forbidden(message)


def _move(db: Session, load: Load, target: LoadStatus) -> None:
    if not load_store.transition_status(db, load.id, target):
        raise InvalidState(f"Cannot move a load from {load.status} to {target.value}")


def mark_delivered(db: Session, load_id: str, trucker_id: str) -> Load:
    with atomic(db):
        load = _get_load(db, load_id)
        _check_assigned_trucker(load, trucker_id, "Not authorized to update this load")

        if load.status != LoadStatus.IN_TRANSIT.value:
            raise InvalidState("Load must be in transit to mark as delivered")
        _move(db, load, LoadStatus.DELIVERED)

    db.refresh(load)
    logger.info("Carga entregada", load_id=load_id, trucker_id=trucker_id)
    return load


def mark_completed(db: Session, load_id: str, shipper_id: str) -> Load:
    with atomic(db):
        load = _get_load(db, load_id)
        _check_owner(load, shipper_id, "Not authorized to update this load")

        if load.status != LoadStatus.DELIVERED.value:
            raise InvalidState("Load must be delivered to mark as completed")
        _move(db, load, LoadStatus.COMPLETED)

    db.refresh(load)
    logger.info("Carga completada", load_id=load_id, shipper_id=shipper_id)
    return load


def cancel_load(db: Session, load_id: str, shipper_id: str) -> Load:
    with atomic(db):
        load = _get_load(db, load_id)
        _check_owner(load, shipper_id, "Not authorized to cancel this load")

        if load.status in (LoadStatus.DELIVERED.value, LoadStatus.COMPLETED.value):
            raise InvalidState("Cannot cancel a load that is already delivered or completed")
        if load.status == LoadStatus.CANCELLED.value:
            raise InvalidState("Load is already cancelled")

        had_accepted_bid = load.accepted_bid_id
        _move(db, load, LoadStatus.CANCELLED)
        rejected = bid_store.reject_all_for_load(db, load.id)

    if had_accepted_bid:
        # TODO: sin reembolso ni aviso al camionero; decidir política con negocio
        logger.warning(
            "Cancelada carga ya asignada: la puja aceptada pasa a rechazada",
            load_id=load_id,
            bid_id=had_accepted_bid,
        )

    db.refresh(load)
    logger.info("Carga cancelada", load_id=load_id, rejected_bids=rejected)
    return load


def apply_tracking_update(
    db: Session,
    load_id: str,
    trucker_id: str,
    tracking_status: TrackingStatus,
) -> Optional[LoadStatus]:
    """
    Efecto de un update de tracking sobre la carga. No hace commit: lo llama
    el servicio de tracking dentro de su transacción.

    Devuelve el estado nuevo, o None si el update no mueve la carga.
    """
    load = _get_load(db, load_id)
    _check_assigned_trucker(load, trucker_id, "Not authorized to update tracking for this load")

    transition = TRACKING_TRANSITIONS.get(TrackingStatus(tracking_status))
    if not transition:
        return None

    required, target = transition
    if load.status != required.value:
        return None

    if not load_store.transition_status(db, load.id, target):
        return None

    logger.info(
        "Estado de carga actualizado por tracking",
        load_id=load_id,
        tracking_status=TrackingStatus(tracking_status).value,
        status=target.value,
    )
    return target
