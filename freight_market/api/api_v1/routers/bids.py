from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from freight_market.api.deps import get_current_actor, require_role
from freight_market.core.actors import Actor, Role
from freight_market.core.logging import get_logger
from freight_market.db import get_db
from freight_market.schemas.bid import BidCreate, BidRead, BidUpdate
from freight_market.schemas.common import Envelope, ListEnvelope
from freight_market.services import assignment_service, bidding_service

router = APIRouter(prefix="/bids", tags=["bids"])
logger = get_logger(module="bids")


def _one(bid) -> Envelope[BidRead]:
    return Envelope[BidRead](data=BidRead.model_validate(bid))


@router.post(
    "",
    response_model=Envelope[BidRead],
    status_code=status.HTTP_201_CREATED,
)
def create_bid(
    bid_in: BidCreate,
    actor: Actor = Depends(require_role(Role.TRUCKER)),
    db: Session = Depends(get_db),
):
    bid = bidding_service.place_bid(db=db, trucker_id=actor.id, bid_in=bid_in)

    logger.info(
        "Puja creada",
        bid_id=bid.id,
        load_id=bid.load_id,
        amount=bid.amount,
    )

    return _one(bid)


@router.get("/load/{load_id}", response_model=ListEnvelope[BidRead])
def list_bids_for_load(
    load_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    bids = bidding_service.list_bids_for_load(db=db, load_id=load_id, actor=actor)

    logger.info(
        "Listando pujas de carga",
        load_id=load_id,
        role=actor.role.value,
        count=len(bids),
    )

    return ListEnvelope[BidRead](
        count=len(bids),
        data=[BidRead.model_validate(b) for b in bids],
    )


@router.get("/trucker/me", response_model=ListEnvelope[BidRead])
def list_my_bids(
    actor: Actor = Depends(require_role(Role.TRUCKER)),
    db: Session = Depends(get_db),
):
    bids = bidding_service.list_trucker_bids(db=db, trucker_id=actor.id)
    return ListEnvelope[BidRead](
        count=len(bids),
        data=[BidRead.model_validate(b) for b in bids],
    )


@router.get("/{bid_id}", response_model=Envelope[BidRead])
def get_bid(
    bid_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    bid = bidding_service.get_bid_for_actor(db=db, bid_id=bid_id, actor=actor)
    return _one(bid)


@router.put("/{bid_id}", response_model=Envelope[BidRead])
def update_bid(
    bid_id: str,
    bid_in: BidUpdate,
    actor: Actor = Depends(require_role(Role.TRUCKER)),
    db: Session = Depends(get_db),
):
    bid = bidding_service.update_bid(
        db=db,
        bid_id=bid_id,
        trucker_id=actor.id,
        bid_in=bid_in,
    )

    logger.info("Puja actualizada", bid_id=bid_id)

    return _one(bid)


@router.put("/{bid_id}/withdraw", response_model=Envelope[BidRead])
def withdraw_bid(
    bid_id: str,
    actor: Actor = Depends(require_role(Role.TRUCKER)),
    db: Session = Depends(get_db),
):
    bid = bidding_service.withdraw_bid(db=db, bid_id=bid_id, trucker_id=actor.id)

    logger.info("Puja retirada", bid_id=bid_id)

    return _one(bid)


@router.put("/{bid_id}/accept", response_model=Envelope[BidRead])
def accept_bid(
    bid_id: str,
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    bid = assignment_service.accept_bid(db=db, bid_id=bid_id, shipper_id=actor.id)

    logger.info(
        "Puja aceptada",
        bid_id=bid_id,
        load_id=bid.load_id,
    )

    return _one(bid)


@router.put("/{bid_id}/reject", response_model=Envelope[BidRead])
def reject_bid(
    bid_id: str,
    actor: Actor = Depends(require_role(Role.SHIPPER)),
    db: Session = Depends(get_db),
):
    bid = assignment_service.reject_bid(db=db, bid_id=bid_id, shipper_id=actor.id)

    logger.info("Puja rechazada", bid_id=bid_id)

    return _one(bid)
