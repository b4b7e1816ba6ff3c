from datetime import datetime
from typing import List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from .common import CamelModel


class Dimensions(CamelModel):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class LoadBase(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)

    pickup_address: str = Field(min_length=1)
    pickup_lat: Optional[float] = None
    pickup_lon: Optional[float] = None
    delivery_address: str = Field(min_length=1)
    delivery_lat: Optional[float] = None
    delivery_lon: Optional[float] = None

    pickup_date: datetime
    delivery_date: datetime

    weight: float = Field(gt=0)
    dimensions: Optional[Dimensions] = None
    load_type: str = Field(min_length=1)
    special_requirements: List[str] = Field(default_factory=list)
    budget: float = Field(gt=0)
    bidding_deadline: datetime


class LoadCreate(LoadBase):
    # Se puede publicar directamente o dejar en borrador
    status: Literal["pending", "open"] = "pending"

    @model_validator(mode="after")
    def _check_dates(self) -> "LoadCreate":
        if self.delivery_date < self.pickup_date:
            raise ValueError("deliveryDate must be on or after pickupDate")
        return self


# Campos NOT NULL en `loads`: en una edición se omiten, nunca se mandan a null
REQUIRED_LOAD_FIELDS = (
    "title",
    "description",
    "pickup_address",
    "delivery_address",
    "pickup_date",
    "delivery_date",
    "weight",
    "load_type",
    "special_requirements",
    "budget",
    "bidding_deadline",
    "status",
)


class LoadUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)

    pickup_address: Optional[str] = Field(default=None, min_length=1)
    pickup_lat: Optional[float] = None
    pickup_lon: Optional[float] = None
    delivery_address: Optional[str] = Field(default=None, min_length=1)
    delivery_lat: Optional[float] = None
    delivery_lon: Optional[float] = None

    pickup_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None

    weight: Optional[float] = Field(default=None, gt=0)
    dimensions: Optional[Dimensions] = None
    load_type: Optional[str] = Field(default=None, min_length=1)
    special_requirements: Optional[List[str]] = None
    budget: Optional[float] = Field(default=None, gt=0)
    bidding_deadline: Optional[datetime] = None

    # La única transición que puede pedir el shipper editando: publicar
    status: Optional[Literal["open"]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(*REQUIRED_LOAD_FIELDS)
    @classmethod
    def _not_null(cls, value, info):
        # Solo se pueden omitir; las columnas son NOT NULL
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class LoadRead(LoadBase):
    id: str
    shipper_id: str
    status: str
    assigned_trucker_id: Optional[str] = None
    accepted_bid_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AssignLoadRequest(CamelModel):
    bid_id: str
