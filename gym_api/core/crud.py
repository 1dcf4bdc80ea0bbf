"""
Acceso genérico a tablas por id, siempre acotado al gimnasio del usuario.

Los contadores se modifican con una sola sentencia UPDATE atómica
(``col = col + n``) que se confirma de inmediato.
"""
import math
from typing import Any, Dict, Optional, Type

from sqlalchemy import case
from sqlalchemy.orm import Query, Session

from gym_api.core.errors import NotFoundError


def get_scoped(db: Session, model: Type, obj_id: Any, gym_id: Optional[int]):
    if obj_id is None or gym_id is None:
        return None
    return db.query(model).filter(model.id == obj_id, model.gym_id == gym_id).first()


def get_scoped_or_404(db: Session, model: Type, obj_id: Any, gym_id: Optional[int], message: str = "Not found"):
    obj = get_scoped(db, model, obj_id, gym_id)
    if obj is None:
        raise NotFoundError(message)
    return obj


def paginate(query: Query, page: int = 1, limit: int = 50) -> Dict[str, Any]:
    page = max(1, int(page))
    limit = max(1, int(limit))
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if total else 0,
    }


def increment(db: Session, model: Type, obj_id: Any, field: str, delta: int, floor_zero: bool = True) -> int:
    """
    Suma ``delta`` a una columna entera de una fila y confirma.

    Con ``floor_zero`` el resultado nunca baja de 0. Devuelve el número de
    filas afectadas (0 si la fila ya no existe).
    """
    column = getattr(model, field)
    if floor_zero and delta < 0:
        new_value = case((column + delta < 0, 0), else_=column + delta)
    else:
        new_value = column + delta
    updated = (
        db.query(model)
        .filter(model.id == obj_id)
        .update({column: new_value}, synchronize_session=False)
    )
    db.commit()
    return updated


def conditional_decrement(db: Session, model: Type, obj_id: Any, field: str, amount: int, extra: Optional[Dict] = None) -> bool:
    """
    Resta ``amount`` solo si la columna vale al menos ``amount``.

    La comprobación y la resta son la misma sentencia, así dos operaciones
    concurrentes no pueden dejar la columna en negativo. ``extra`` permite
    actualizar otras columnas en la misma sentencia.
    """
    column = getattr(model, field)
    values = {column: column - amount}
    if extra:
        values.update(extra)
    updated = (
        db.query(model)
        .filter(model.id == obj_id, column >= amount)
        .update(values, synchronize_session=False)
    )
    db.commit()
    return updated == 1
