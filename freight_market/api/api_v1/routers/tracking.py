from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from freight_market.api.deps import get_current_actor, require_role
from freight_market.core.actors import Actor, Role
from freight_market.core.logging import get_logger
from freight_market.db import get_db
from freight_market.schemas.common import Envelope, ListEnvelope
from freight_market.schemas.tracking import IssueReport, TrackingCreate, TrackingRead
from freight_market.services import tracking_service

router = APIRouter(prefix="/tracking", tags=["tracking"])
logger = get_logger(module="tracking")


@router.post(
    "",
    response_model=Envelope[TrackingRead],
    status_code=status.HTTP_201_CREATED,
)
def create_tracking_update(
    tracking_in: TrackingCreate,
    actor: Actor = Depends(require_role(Role.TRUCKER)),
    db: Session = Depends(get_db),
):
    record = tracking_service.create_tracking_update(
        db=db,
        trucker_id=actor.id,
        tracking_in=tracking_in,
    )

    logger.info(
        "Tracking creado",
        tracking_id=record.id,
        load_id=record.load_id,
        status=record.status,
    )

    return Envelope[TrackingRead](data=TrackingRead.model_validate(record))


@router.get("/load/{load_id}", response_model=ListEnvelope[TrackingRead])
def list_tracking_updates(
    load_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    records = tracking_service.list_tracking_updates(db=db, load_id=load_id, actor=actor)
    return ListEnvelope[TrackingRead](
        count=len(records),
        data=[TrackingRead.model_validate(r) for r in records],
    )


@router.get("/load/{load_id}/latest", response_model=Envelope[Optional[TrackingRead]])
def get_latest_tracking_update(
    load_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    record = tracking_service.get_latest_tracking_update(db=db, load_id=load_id, actor=actor)
    data = TrackingRead.model_validate(record) if record else None
    return Envelope[Optional[TrackingRead]](data=data)


@router.post(
    "/load/{load_id}/issue",
    response_model=Envelope[TrackingRead],
    status_code=status.HTTP_201_CREATED,
)
def report_issue(
    load_id: str,
    issue_in: IssueReport,
    actor: Actor = Depends(require_role(Role.TRUCKER)),
    db: Session = Depends(get_db),
):
    record = tracking_service.report_issue(
        db=db,
        load_id=load_id,
        trucker_id=actor.id,
        issue_in=issue_in,
    )

    logger.warning("Incidencia en carga", load_id=load_id, tracking_id=record.id)

    return Envelope[TrackingRead](data=TrackingRead.model_validate(record))
