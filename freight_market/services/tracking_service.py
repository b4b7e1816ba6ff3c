import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from freight_market.core.actors import Actor, Role
from freight_market.core.errors import Forbidden, NotFound
from freight_market.core.logging import get_logger
from freight_market.db import atomic
from freight_market.models.load import Load
from freight_market.models.tracking import LoadTracking, TrackingStatus
from freight_market.schemas.tracking import IssueReport, TrackingCreate, TrackingLocation
from freight_market.services import lifecycle_service, load_store

logger = get_logger(module="tracking_service")


def _new_record(
    load_id: str,
    trucker_id: str,
    status: TrackingStatus,
    location: Optional[TrackingLocation],
    notes: Optional[str],
    estimated_arrival=None,
) -> LoadTracking:
    location = location or TrackingLocation()
    return LoadTracking(
        id=str(uuid.uuid4()),
        load_id=load_id,
        trucker_id=trucker_id,
        status=status.value,
        location_address=location.address,
        location_lat=location.lat,
        location_lon=location.lon,
        notes=notes,
        estimated_arrival=estimated_arrival,
    )


def create_tracking_update(
    db: Session,
    trucker_id: str,
    tracking_in: TrackingCreate,
) -> LoadTracking:
    # El cambio de estado de la carga y el registro van juntos
    with atomic(db):
        new_status = lifecycle_service.apply_tracking_update(
            db,
            tracking_in.load,
            trucker_id,
            tracking_in.status,
        )
        record = _new_record(
            tracking_in.load,
            trucker_id,
            tracking_in.status,
            tracking_in.location,
            tracking_in.notes,
            tracking_in.estimated_arrival,
        )
        db.add(record)

    db.refresh(record)
    logger.info(
        "Tracking registrado",
        tracking_id=record.id,
        load_id=record.load_id,
        status=record.status,
        load_status=new_status.value if new_status else None,
    )
    return record


def report_issue(
    db: Session,
    load_id: str,
    trucker_id: str,
    issue_in: IssueReport,
) -> LoadTracking:
    with atomic(db):
        load = load_store.get_load(db, load_id)
        if not load:
            raise NotFound(f"Load not found with id of {load_id}")
        if load.assigned_trucker_id != trucker_id:
            raise Forbidden("Not authorized to report issues for this load")

        record = _new_record(
            load_id,
            trucker_id,
            TrackingStatus.ISSUE_REPORTED,
            issue_in.location,
            issue_in.notes,
        )
        db.add(record)

    db.refresh(record)
    logger.warning("Incidencia reportada", load_id=load_id, tracking_id=record.id)
    return record


def _viewable_load(db: Session, load_id: str, actor: Actor) -> Load:
    load = load_store.get_load(db, load_id)
    if not load:
        raise NotFound(f"Load not found with id of {load_id}")

    if actor.role == Role.SHIPPER and load.shipper_id != actor.id:
        raise Forbidden("Not authorized to view tracking for this load")
    if actor.role == Role.TRUCKER and load.assigned_trucker_id != actor.id:
        raise Forbidden("Not authorized to view tracking for this load")
    return load


def list_tracking_updates(db: Session, load_id: str, actor: Actor) -> List[LoadTracking]:
    _viewable_load(db, load_id, actor)
    stmt = (
        select(LoadTracking)
        .where(LoadTracking.load_id == load_id)
        .order_by(LoadTracking.created_at.desc())
    )
    return list(db.execute(stmt).scalars().all())


def get_latest_tracking_update(db: Session, load_id: str, actor: Actor) -> Optional[LoadTracking]:
    _viewable_load(db, load_id, actor)
    stmt = (
        select(LoadTracking)
        .where(LoadTracking.load_id == load_id)
        .order_by(LoadTracking.created_at.desc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()
