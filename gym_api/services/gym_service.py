"""
Alta y baja de gimnasios.

Un gimnasio solo puede eliminarse cuando no le queda ningún registro
dependiente; la respuesta de conflicto incluye el conteo de cada tipo.
"""
import logging
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gym_api.core.deps import Identity
from gym_api.core.errors import ConflictError, NotFoundError
from gym_api.models.admin import Admin
from gym_api.models.calendar_event import CalendarEvent
from gym_api.models.client import Client
from gym_api.models.collaborator import Collaborator
from gym_api.models.gym import Gym
from gym_api.models.membership import Membership
from gym_api.models.note import Note
from gym_api.models.product import Product
from gym_api.models.product_sale import ProductSale
from gym_api.models.supplier import Supplier


logger = logging.getLogger(__name__)


DEPENDENCY_MODELS = {
    "collaborators": Collaborator,
    "clients": Client,
    "memberships": Membership,
    "products": Product,
    "sales": ProductSale,
    "suppliers": Supplier,
}


def count_dependencies(db: Session, gym_id: int) -> Dict[str, int]:
    return {
        label: db.query(model).filter(model.gym_id == gym_id).count()
        for label, model in DEPENDENCY_MODELS.items()
    }


def create_gym(db: Session, identity: Identity, data: Dict[str, Any]) -> Gym:
    admin = db.query(Admin).filter(Admin.id == identity.id).first()
    if admin is None:
        raise NotFoundError("Administrador no encontrado")
    if admin.gym_id:
        raise ConflictError("Este administrador ya tiene un gimnasio asignado")
    if db.query(Gym.id).filter(Gym.name == data["name"]).first():
        raise ConflictError("Ya existe un gimnasio con este nombre")

    gym = Gym(**data)
    db.add(gym)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Ya existe un gimnasio con este nombre", error=str(e.orig)) from e
    admin.gym_id = gym.id
    db.commit()
    db.refresh(gym)
    logger.info("gym %s created by admin %s", gym.id, admin.id)
    return gym


def delete_gym(db: Session, gym: Gym) -> Dict[str, int]:
    counts = count_dependencies(db, gym.id)
    if any(counts.values()):
        raise ConflictError(
            "No se puede eliminar el gimnasio porque tiene registros asociados",
            details={"dependencies": counts},
        )

    gym_id = gym.id
    db.query(Admin).filter(Admin.gym_id == gym_id).update({Admin.gym_id: None}, synchronize_session=False)
    db.query(Collaborator).filter(Collaborator.gym_id == gym_id).update(
        {Collaborator.gym_id: None}, synchronize_session=False
    )
    db.query(Note).filter(Note.gym_id == gym_id).delete(synchronize_session=False)
    db.query(CalendarEvent).filter(CalendarEvent.gym_id == gym_id).delete(synchronize_session=False)
    db.delete(gym)
    db.commit()
    logger.info("gym %s deleted", gym_id)
    return counts
