from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from freight_market.api.deps import get_current_actor, require_role
from freight_market.core.actors import Actor, Role
from freight_market.core.logging import get_logger
from freight_market.db import get_db
from freight_market.schemas.common import Envelope, ListEnvelope, PageEnvelope, PageRef, Pagination
from freight_market.schemas.load import AssignLoadRequest, LoadCreate, LoadRead, LoadUpdate
from freight_market.services import assignment_service, lifecycle_service, load_service

router = APIRouter(prefix="/loads", tags=["loads"])
logger = get_logger(module="loads")


def _one(load) -> Envelope[LoadRead]:
    return Envelope[LoadRead](data=LoadRead.model_validate(load))


def _many(loads) -> ListEnvelope[LoadRead]:
    return ListEnvelope[LoadRead](
        count=len(loads),
        data=[LoadRead.model_validate(x) for x in loads],
    )


@router.post(
    "",
    response_model=Envelope[LoadRead],
    status_code=status.HTTP_201_CREATED,
)
def create_load(
    load_in: LoadCreate,
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    load = load_service.create_load(db=db, shipper_id=actor.id, load_in=load_in)

    logger.info(
        "Carga creada",
        load_id=load.id,
        status=load.status,
    )

    return _one(load)


@router.get("", response_model=PageEnvelope[LoadRead])
def list_loads(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    shipper: Optional[str] = None,
    load_type: Optional[str] = Query(default=None, alias="loadType"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=25, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    skip = (page - 1) * limit
    loads, total = load_service.list_loads(
        db=db,
        status=status_filter,
        shipper_id=shipper,
        load_type=load_type,
        skip=skip,
        limit=limit,
    )

    pagination = Pagination()
    if skip + limit < total:
        pagination.next = PageRef(page=page + 1, limit=limit)
    if skip > 0:
        pagination.prev = PageRef(page=page - 1, limit=limit)

    logger.info(
        "Listando cargas",
        page=page,
        limit=limit,
        count=len(loads),
        total=total,
    )

    return PageEnvelope[LoadRead](
        count=len(loads),
        total=total,
        pagination=pagination,
        data=[LoadRead.model_validate(x) for x in loads],
    )


@router.get("/shipper/me", response_model=ListEnvelope[LoadRead])
def list_my_loads(
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    return _many(load_service.list_shipper_loads(db=db, shipper_id=actor.id))


@router.get("/available", response_model=ListEnvelope[LoadRead])
def list_available_loads(
    actor: Actor = Depends(require_role(Role.TRUCKER)),
    db: Session = Depends(get_db),
):
    return _many(load_service.list_available_loads(db=db))


@router.get("/{load_id}", response_model=Envelope[LoadRead])
def get_load(
    load_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return _one(load_service.get_load(db=db, load_id=load_id))


@router.put("/{load_id}", response_model=Envelope[LoadRead])
def update_load(
    load_id: str,
    load_in: LoadUpdate,
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    load = load_service.update_load(
        db=db,
        load_id=load_id,
        shipper_id=actor.id,
        load_in=load_in,
    )

    logger.info("Carga actualizada", load_id=load_id, status=load.status)

    return _one(load)


@router.delete("/{load_id}", response_model=Envelope[dict])
def delete_load(
    load_id: str,
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    load_service.delete_load(db=db, load_id=load_id, shipper_id=actor.id)

    logger.info("Carga eliminada", load_id=load_id)

    return Envelope[dict](data={})


@router.put("/{load_id}/assign", response_model=Envelope[LoadRead])
def assign_load(
    load_id: str,
    assign_in: AssignLoadRequest,
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    load = assignment_service.assign_load(
        db=db,
        load_id=load_id,
        shipper_id=actor.id,
        bid_id=assign_in.bid_id,
    )

    logger.info(
        "Carga asignada",
        load_id=load_id,
        bid_id=assign_in.bid_id,
    )

    return _one(load)


@router.put("/{load_id}/deliver", response_model=Envelope[LoadRead])
def mark_delivered(
    load_id: str,
    actor: Actor = Depends(require_role(Role.TRUCKER)),
    db: Session = Depends(get_db),
):
    load = lifecycle_service.mark_delivered(db=db, load_id=load_id, trucker_id=actor.id)
    logger.info("Carga marcada como entregada", load_id=load_id)
    return _one(load)


@router.put("/{load_id}/complete", response_model=Envelope[LoadRead])
def mark_completed(
    load_id: str,
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    load = lifecycle_service.mark_completed(db=db, load_id=load_id, shipper_id=actor.id)
    logger.info("Carga marcada como completada", load_id=load_id)
    return _one(load)


@router.put("/{load_id}/cancel", response_model=Envelope[LoadRead])
def cancel_load(
    load_id: str,
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    load = lifecycle_service.cancel_load(db=db, load_id=load_id, shipper_id=actor.id)
    logger.info("Carga cancelada", load_id=load_id)
    return _one(load)
