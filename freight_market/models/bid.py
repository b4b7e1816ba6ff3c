from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freight_market.core.clock import utcnow

from .base import Base

if TYPE_CHECKING:
    from .load import Load


class BidStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


# Una vez aceptada o rechazada la puja ya no se toca (salvo cancelación de la carga)
FINAL_BID_STATUSES = frozenset({BidStatus.ACCEPTED, BidStatus.REJECTED})


class Bid(Base):
    __tablename__ = "bids"
    __table_args__ = (
        # Un camionero solo puede pujar una vez por carga
        UniqueConstraint("load_id", "trucker_id", name="uq_bids_load_trucker"),
        Index("ix_bids_load", "load_id"),
        Index("ix_bids_trucker_created", "trucker_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    load_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("loads.id", ondelete="CASCADE"),
        nullable=False,
    )
    trucker_id: Mapped[str] = mapped_column(String, nullable=False)

    amount: Mapped[float] = mapped_column(Float)
    proposed_pickup_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    proposed_delivery_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String, default=BidStatus.PENDING.value, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    load: Mapped["Load"] = relationship(back_populates="bids")

    def __repr__(self) -> str:
        return f"<Bid id={self.id!r} load_id={self.load_id!r} status={self.status!r}>"

    @property
    def is_final(self) -> bool:
        return BidStatus(self.status) in FINAL_BID_STATUSES
