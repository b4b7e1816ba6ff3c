from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from .common import CamelModel


class BidCreate(CamelModel):
    load: str  # id de la carga
    amount: float = Field(gt=0)
    proposed_pickup_date: Optional[datetime] = None
    proposed_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None


class BidUpdate(CamelModel):
    # El estado NO se edita aquí: solo withdraw/accept/reject
    amount: Optional[float] = Field(default=None, gt=0)
    proposed_pickup_date: Optional[datetime] = None
    proposed_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("amount")
    @classmethod
    def _amount_not_null(cls, value: Optional[float]) -> float:
        # Omitirlo vale; mandarlo a null no (la columna es NOT NULL)
        if value is None:
            raise ValueError("amount cannot be null")
        return value


class BidRead(CamelModel):
    id: str
    load_id: str
    trucker_id: str
    amount: float
    proposed_pickup_date: Optional[datetime] = None
    proposed_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
