from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from freight_market.models.tracking import TrackingStatus

from .common import CamelModel


class TrackingLocation(CamelModel):
    address: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None


class TrackingCreate(CamelModel):
    load: str
    status: TrackingStatus
    location: TrackingLocation
    notes: Optional[str] = None
    estimated_arrival: Optional[datetime] = None


class IssueReport(CamelModel):
    notes: str = Field(min_length=1)
    location: Optional[TrackingLocation] = None


class TrackingRead(CamelModel):
    id: str
    load_id: str
    trucker_id: str
    status: str
    location_address: Optional[str] = None
    location_lat: Optional[float] = None
    location_lon: Optional[float] = None
    notes: Optional[str] = None
    estimated_arrival: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
