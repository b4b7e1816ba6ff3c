# freight_market/api/deps.py
"""
Identidad del actor. El gateway de autenticación (fuera de este servicio)
inyecta ``X-Actor-Id`` y ``X-Actor-Role``; aquí solo se exige que estén y que
el rol pueda usar la ruta. La propiedad la revalidan los servicios.
"""
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status

from freight_market.core.actors import Actor, Role
from freight_market.core.logging import get_logger

logger = get_logger(module="deps")


def get_current_actor(
    x_actor_id: Optional[str] = Header(default=None),
    x_actor_role: Optional[str] = Header(default=None),
) -> Actor:
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to access this route",
        )
    try:
        role = Role(x_actor_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role {x_actor_role}",
        )
    return Actor(id=x_actor_id, role=role)


def require_role(*roles: Role) -> Callable[..., Actor]:
    def _dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            logger.warning(
                "Rol no autorizado para la ruta",
                actor_id=actor.id,
                role=actor.role.value,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {actor.role.value} is not authorized to access this route",
            )
        return actor

    return _dependency
