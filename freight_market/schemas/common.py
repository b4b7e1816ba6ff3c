from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from freight_market.core.clock import to_utc_naive

T = TypeVar("T")


class CamelModel(BaseModel):
    """
    Base de los schemas de la API: JSON en camelCase (como el frontend),
    acepta también snake_case. Las fechas se guardan en UTC sin zona.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return to_utc_naive(value)
        return value


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ListEnvelope(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class PageRef(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    next: Optional[PageRef] = None
    prev: Optional[PageRef] = None


class PageEnvelope(ListEnvelope[T], Generic[T]):
    total: int
    pagination: Pagination
