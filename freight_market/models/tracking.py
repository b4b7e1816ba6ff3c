from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from freight_market.core.clock import utcnow

from .base import Base


class TrackingStatus(str, enum.Enum):
    PENDING = "pending"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    DELAYED = "delayed"
    ISSUE_REPORTED = "issue_reported"


class LoadTracking(Base):
    __tablename__ = "load_tracking"
    __table_args__ = (
        Index("ix_load_tracking_load_created", "load_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    load_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("loads.id", ondelete="CASCADE"),
        nullable=False,
    )
    trucker_id: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)

    location_address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    location_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_lon: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    estimated_arrival: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f"<LoadTracking id={self.id!r} load_id={self.load_id!r} status={self.status!r}>"
