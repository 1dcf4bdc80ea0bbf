"""
Recalculo del porcentaje de uso de las membresías de un gimnasio.

``porcentaje_uso`` de cada membresía es su parte de los usuarios inscritos
en todas las membresías del gimnasio, redondeada al entero más cercano
(las mitades hacia arriba). Si no hay usuarios inscritos todos valen 0.
"""
import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from gym_api.core.crud import increment
from gym_api.models.membership import Membership


logger = logging.getLogger(__name__)


def usage_percentage(count: int, total: int) -> int:
    count = max(0, int(count or 0))
    if total <= 0:
        return 0
    # Integer half-up rounding of 100 * count / total
    return (200 * count + total) // (2 * total)


def compute_usage(counts: Dict[int, int]) -> Dict[int, int]:
    total = sum(max(0, int(c or 0)) for c in counts.values())
    return {membership_id: usage_percentage(count, total) for membership_id, count in counts.items()}


def rebalance_usage(db: Session, gym_id: int) -> Dict[int, int]:
    """
    Recalcula y guarda ``porcentaje_uso`` para todas las membresías del gimnasio.

    Es idempotente: puede llamarse después de cualquier cambio en
    ``cantidad_usuarios``. Devuelve el mapa membership_id -> porcentaje.
    """
    memberships: List[Membership] = db.query(Membership).filter(Membership.gym_id == gym_id).all()
    if not memberships:
        return {}

    usage = compute_usage({m.id: m.cantidad_usuarios for m in memberships})
    mappings = [
        {"id": m.id, "porcentaje_uso": usage[m.id]}
        for m in memberships
        if m.porcentaje_uso != usage[m.id]
    ]
    if mappings:
        db.bulk_update_mappings(Membership, mappings)
        db.commit()
    db.expire_all()
    logger.info("rebalance gym=%s memberships=%s changed=%s", gym_id, len(memberships), len(mappings))
    return usage


def enroll(db: Session, membership_id: int) -> None:
    increment(db, Membership, membership_id, "cantidad_usuarios", 1)


def unenroll(db: Session, membership_id: int) -> None:
    increment(db, Membership, membership_id, "cantidad_usuarios", -1, floor_zero=True)
