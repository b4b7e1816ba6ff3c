import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from freight_market.core.clock import utcnow
from freight_market.core.errors import Forbidden, InvalidState, NotFound
from freight_market.core.logging import get_logger
from freight_market.db import atomic
from freight_market.models.load import EDITABLE_STATUSES, Load, LoadStatus
from freight_market.schemas.load import LoadCreate, LoadUpdate
from freight_market.services import load_store

logger = get_logger(module="load_service")


def create_load(db: Session, shipper_id: str, load_in: LoadCreate) -> Load:
    load_id = str(uuid.uuid4())

    with atomic(db):
        db_obj = Load(
            id=load_id,
            shipper_id=shipper_id,
            **load_in.model_dump(),
        )
        load_store.add_load(db, db_obj)

    db.refresh(db_obj)

    logger.info(
        "Carga creada en servicio",
        load_id=db_obj.id,
        shipper_id=shipper_id,
        status=db_obj.status,
        deadline=str(db_obj.bidding_deadline),
    )

    return db_obj


def get_load(db: Session, load_id: str) -> Load:
    load = load_store.get_load(db, load_id)
    if not load:
        raise NotFound(f"Load not found with id of {load_id}")
    return load


def list_loads(
    db: Session,
    status: Optional[str] = None,
    shipper_id: Optional[str] = None,
    load_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 25,
) -> Tuple[List[Load], int]:
    loads = load_store.list_loads(
        db,
        status=status,
        shipper_id=shipper_id,
        load_type=load_type,
        skip=skip,
        limit=limit,
    )
    total = load_store.count_loads(
        db,
        status=status,
        shipper_id=shipper_id,
        load_type=load_type,
    )
    return loads, total


def list_shipper_loads(db: Session, shipper_id: str) -> List[Load]:
    return load_store.list_loads(db, shipper_id=shipper_id, limit=None)


def list_available_loads(db: Session, now: Optional[datetime] = None) -> List[Load]:
    return load_store.list_available_loads(db, now or utcnow())


def _editable_load(db: Session, load_id: str, shipper_id: str, action: str) -> Load:
    load = load_store.get_load_for_update(db, load_id)
    if not load:
        raise NotFound(f"Load not found with id of {load_id}")
    if load.shipper_id != shipper_id:
        logger.warning(
            "Intento de modificar carga ajena",
            load_id=load_id,
            shipper_id=shipper_id,
            action=action,
        )
        raise Forbidden(f"Not authorized to {action} this load")
    if LoadStatus(load.status) not in EDITABLE_STATUSES or load.is_assigned:
        raise InvalidState(f"Cannot {action} a load that is already assigned or in progress")
    return load


def update_load(
    db: Session,
    load_id: str,
    shipper_id: str,
    load_in: LoadUpdate,
) -> Load:
    with atomic(db):
        load = _editable_load(db, load_id, shipper_id, "update")

        update_data = load_in.model_dump(exclude_unset=True)
        pickup = update_data.get("pickup_date", load.pickup_date)
        delivery = update_data.get("delivery_date", load.delivery_date)
        if delivery < pickup:
            raise InvalidState("deliveryDate must be on or after pickupDate")

        if update_data and not load_store.update_fields(db, load_id, update_data):
            raise InvalidState("Cannot update a load that is already assigned or in progress")

    db.refresh(load)

    logger.info(
        "Carga actualizada en servicio",
        load_id=load_id,
        fields=sorted(update_data),
    )

    return load


def delete_load(db: Session, load_id: str, shipper_id: str) -> None:
    with atomic(db):
        _editable_load(db, load_id, shipper_id, "delete")
        if not load_store.delete_load(db, load_id):
            raise InvalidState("Cannot delete a load that is already assigned or in progress")

    logger.info(
        "Carga eliminada en servicio",
        load_id=load_id,
    )
