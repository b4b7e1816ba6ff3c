# freight_market/core/actors.py
"""
Identidad del que llama. La autenticación vive fuera (gateway); aquí solo
llega ``id + rol`` y los servicios revalidan la propiedad sobre la carga/puja.
"""
import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    SHIPPER = "shipper"
    TRUCKER = "trucker"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
