from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Optional

from sqlalchemy import JSON, DateTime, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freight_market.core.clock import utcnow

from .base import Base

if TYPE_CHECKING:
    from .bid import Bid


class LoadStatus(str, enum.Enum):
    PENDING = "pending"
    OPEN = "open"
    ASSIGNED = "assigned"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# destino -> estados desde los que se puede llegar
LOAD_TRANSITIONS: Dict[LoadStatus, FrozenSet[LoadStatus]] = {
    LoadStatus.OPEN: frozenset({LoadStatus.PENDING, LoadStatus.OPEN}),
    LoadStatus.ASSIGNED: frozenset({LoadStatus.OPEN}),
    LoadStatus.IN_TRANSIT: frozenset({LoadStatus.ASSIGNED}),
    LoadStatus.DELIVERED: frozenset({LoadStatus.IN_TRANSIT}),
    LoadStatus.COMPLETED: frozenset({LoadStatus.DELIVERED}),
    LoadStatus.CANCELLED: frozenset(
        {LoadStatus.PENDING, LoadStatus.OPEN, LoadStatus.ASSIGNED, LoadStatus.IN_TRANSIT}
    ),
}

TERMINAL_STATUSES = frozenset({LoadStatus.COMPLETED, LoadStatus.CANCELLED})

# Se puede editar/borrar mientras no esté asignada
EDITABLE_STATUSES = frozenset({LoadStatus.PENDING, LoadStatus.OPEN})


def can_transition(current: str, target: LoadStatus) -> bool:
    return LoadStatus(current) in LOAD_TRANSITIONS.get(target, frozenset())


class Load(Base):
    __tablename__ = "loads"
    __table_args__ = (
        Index("ix_loads_status", "status"),
        Index("ix_loads_shipper", "shipper_id"),
        Index("ix_loads_pickup_date", "pickup_date"),
        Index("ix_loads_delivery_date", "delivery_date"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    shipper_id: Mapped[str] = mapped_column(String, nullable=False)

    title: Mapped[str] = mapped_column(String)
    description: Mapped[str] = mapped_column(Text)

    pickup_address: Mapped[str] = mapped_column(String)
    pickup_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    pickup_lon: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    delivery_address: Mapped[str] = mapped_column(String)
    delivery_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    delivery_lon: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    pickup_date: Mapped[datetime] = mapped_column(DateTime)
    delivery_date: Mapped[datetime] = mapped_column(DateTime)

    weight: Mapped[float] = mapped_column(Float)
    dimensions: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)  # length/width/height
    load_type: Mapped[str] = mapped_column(String)
    special_requirements: Mapped[List[str]] = mapped_column(JSON, default=list)
    budget: Mapped[float] = mapped_column(Float)
    bidding_deadline: Mapped[datetime] = mapped_column(DateTime)

    status: Mapped[str] = mapped_column(String, default=LoadStatus.PENDING.value, nullable=False)

    # Se fijan juntos en la asignación y no se vuelven a tocar.
    # accepted_bid_id sin FK: loads <-> bids sería un ciclo de FKs
    assigned_trucker_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    accepted_bid_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    bids: Mapped[List["Bid"]] = relationship(
        back_populates="load",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Load id={self.id!r} status={self.status!r}>"

    # ---- helpers de dominio ----
    @property
    def is_assigned(self) -> bool:
        return self.assigned_trucker_id is not None

    @property
    def is_terminal(self) -> bool:
        return LoadStatus(self.status) in TERMINAL_STATUSES

    def is_open_for_bidding(self, now: datetime) -> bool:
        return self.status == LoadStatus.OPEN.value and now < self.bidding_deadline
