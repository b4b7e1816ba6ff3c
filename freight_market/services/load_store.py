"""
Acceso a la tabla ``loads``.

Es el único sitio que escribe ``status``. Todas las escrituras de estado son
compare-and-set: ``UPDATE ... WHERE status IN (<orígenes válidos>)`` y se
devuelve si se ha tocado la fila, de forma que dos peticiones concurrentes no
pueden aplicar la misma transición dos veces. Nada aquí hace commit; eso es
cosa del servicio que orquesta.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from freight_market.models.load import EDITABLE_STATUSES, LOAD_TRANSITIONS, Load, LoadStatus


def _values(statuses) -> List[str]:
    return [s.value for s in statuses]


def get_load(db: Session, load_id: str) -> Optional[Load]:
    return db.get(Load, load_id)


def get_load_for_update(db: Session, load_id: str) -> Optional[Load]:
    """
    Relee la carga desde BD (sin fiarse del identity map) y la bloquea con
    FOR UPDATE donde el motor lo soporta (en SQLite se ignora).
    """
    stmt = (
        select(Load)
        .where(Load.id == load_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return db.execute(stmt).scalars().first()


def add_load(db: Session, load: Load) -> Load:
    db.add(load)
    db.flush()
    return load


def _filtered(stmt, status: Optional[str], shipper_id: Optional[str], load_type: Optional[str]):
    if status:
        stmt = stmt.where(Load.status == status)
    if shipper_id:
        stmt = stmt.where(Load.shipper_id == shipper_id)
    if load_type:
        stmt = stmt.where(Load.load_type == load_type)
    return stmt


def list_loads(
    db: Session,
    *,
    status: Optional[str] = None,
    shipper_id: Optional[str] = None,
    load_type: Optional[str] = None,
    skip: int = 0,
    limit: Optional[int] = 25,
) -> List[Load]:
    stmt = _filtered(select(Load), status, shipper_id, load_type)
    stmt = stmt.order_by(Load.created_at.desc()).offset(skip).limit(limit)
    return list(db.execute(stmt).scalars().all())


def count_loads(
    db: Session,
    *,
    status: Optional[str] = None,
    shipper_id: Optional[str] = None,
    load_type: Optional[str] = None,
) -> int:
    stmt = _filtered(select(func.count()).select_from(Load), status, shipper_id, load_type)
    return db.execute(stmt).scalar_one()


def list_available_loads(db: Session, now: datetime) -> List[Load]:
    stmt = (
        select(Load)
        .where(
            Load.status == LoadStatus.OPEN.value,
            Load.assigned_trucker_id.is_(None),
            Load.bidding_deadline > now,
        )
        .order_by(Load.bidding_deadline.asc())
    )
    return list(db.execute(stmt).scalars().all())


def transition_status(db: Session, load_id: str, target: LoadStatus) -> bool:
    """Mueve la carga a ``target`` solo si su estado actual lo permite."""
    result = db.execute(
        update(Load)
        .where(
            Load.id == load_id,
            Load.status.in_(_values(LOAD_TRANSITIONS[target])),
        )
        .values(status=target.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def assign(
    db: Session,
    load_id: str,
    trucker_id: str,
    bid_id: str,
    now: datetime,
) -> bool:
    """
    open -> assigned fijando camionero y puja aceptada a la vez.
    La guarda se evalúa dentro del propio UPDATE: si otra aceptación ya ha
    confirmado, o ha vencido el plazo de pujas, no se toca ninguna fila.
    """
    result = db.execute(
        update(Load)
        .where(
            Load.id == load_id,
            Load.status.in_(_values(LOAD_TRANSITIONS[LoadStatus.ASSIGNED])),
            Load.assigned_trucker_id.is_(None),
            Load.accepted_bid_id.is_(None),
            Load.bidding_deadline > now,
        )
        .values(
            status=LoadStatus.ASSIGNED.value,
            assigned_trucker_id=trucker_id,
            accepted_bid_id=bid_id,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def update_fields(db: Session, load_id: str, values: Dict[str, Any]) -> bool:
    """Edición del shipper: solo en pending/open y sin asignar."""
    if "status" in values and LoadStatus(values["status"]) != LoadStatus.OPEN:
        raise ValueError("update_fields can only publish a load")

    result = db.execute(
        update(Load)
        .where(
            Load.id == load_id,
            Load.status.in_(_values(EDITABLE_STATUSES)),
            Load.assigned_trucker_id.is_(None),
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def delete_load(db: Session, load_id: str) -> bool:
    # Las pujas y el tracking caen por ON DELETE CASCADE
    result = db.execute(
        delete(Load)
        .where(
            Load.id == load_id,
            Load.status.in_(_values(EDITABLE_STATUSES)),
            Load.assigned_trucker_id.is_(None),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
