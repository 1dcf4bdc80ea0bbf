"""
Ciclo de vida de clientes.

Mantiene dos reglas entre tablas:
- a lo sumo un cliente "Activo" por (email, gimnasio);
- ``cantidad_usuarios`` de cada membresía cuenta a sus clientes, y tras
  cualquier cambio se recalcula el porcentaje de uso del gimnasio.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gym_api.core.crud import get_scoped, get_scoped_or_404
from gym_api.core.deps import Identity
from gym_api.core.errors import ConflictError, ValidationError
from gym_api.core.saga import Saga
from gym_api.models.client import ACTIVE_CLIENT_STATUS, Client
from gym_api.models.membership import Membership
from gym_api.services.membership_usage import enroll, rebalance_usage, unenroll


logger = logging.getLogger(__name__)


def _normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip().lower()
    return cleaned or None


def find_active_client(db: Session, gym_id: int, email: Optional[str], exclude_id: Optional[int] = None) -> Optional[Client]:
    if not email:
        return None
    query = db.query(Client).filter(
        Client.gym_id == gym_id,
        Client.email == email,
        Client.status == ACTIVE_CLIENT_STATUS,
    )
    if exclude_id is not None:
        query = query.filter(Client.id != exclude_id)
    return query.first()


def _commit_client(db: Session) -> None:
    # uq_clients_gym_active_email catches concurrent writers that passed find_active_client
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(
            "Ya existe un cliente activo con este email en este gimnasio", error=str(e.orig)
        ) from e


def _require_membership(db: Session, membership_id: Any, gym_id: int) -> Membership:
    membership = get_scoped(db, Membership, membership_id, gym_id)
    if membership is None:
        raise ValidationError("La membresía seleccionada no existe en este gimnasio")
    return membership


def create_client(db: Session, identity: Identity, data: Dict[str, Any]) -> Client:
    gym_id = identity.gym_id
    email = _normalize_email(data.get("email"))

    if find_active_client(db, gym_id, email):
        raise ConflictError("Este cliente ya tiene una membresía activa registrada en este gimnasio")
    membership = _require_membership(db, data.get("membership_id"), gym_id)

    values = dict(data)
    values["email"] = email
    values["status"] = values.get("status") or ACTIVE_CLIENT_STATUS
    client = Client(
        **values,
        gym_id=gym_id,
        registered_by_id=identity.id,
        registered_by_type=identity.role.value,
    )

    def insert_client():
        db.add(client)
        _commit_client(db)
        db.refresh(client)

    def remove_client():
        db.query(Client).filter(Client.id == client.id).delete(synchronize_session=False)
        db.commit()

    with Saga("create_client", session=db, on_compensated=lambda: rebalance_usage(db, gym_id)) as saga:
        saga.step("insert_client", insert_client, remove_client)
        saga.step("enroll", lambda: enroll(db, membership.id), lambda: unenroll(db, membership.id))
        saga.step("rebalance", lambda: rebalance_usage(db, gym_id))

    logger.info("client %s enrolled in membership %s (gym=%s)", client.id, membership.id, gym_id)
    db.refresh(client)
    return client


def update_client(db: Session, identity: Identity, client_id: int, changes: Dict[str, Any]) -> Client:
    gym_id = identity.gym_id
    client = get_scoped_or_404(db, Client, client_id, gym_id, "Cliente no encontrado")

    changes = dict(changes)
    new_membership_id = changes.pop("membership_id", None)
    old_membership_id = client.membership_id
    membership_changed = new_membership_id is not None and int(new_membership_id) != old_membership_id
    if membership_changed:
        _require_membership(db, new_membership_id, gym_id)
        new_membership_id = int(new_membership_id)

    if "email" in changes:
        changes["email"] = _normalize_email(changes["email"])
    if "status" in changes and not changes["status"]:
        changes.pop("status")

    resulting_status = changes.get("status", client.status)
    resulting_email = changes.get("email", client.email)
    becomes_active = resulting_status == ACTIVE_CLIENT_STATUS and (
        client.status != ACTIVE_CLIENT_STATUS or resulting_email != client.email
    )
    if becomes_active and find_active_client(db, gym_id, resulting_email, exclude_id=client.id):
        raise ConflictError("Ya existe un cliente activo con este email en este gimnasio")

    changes["updated_by_id"] = identity.id
    changes["updated_by_type"] = identity.role.value
    if membership_changed:
        changes["membership_id"] = new_membership_id
    previous = {field: getattr(client, field) for field in changes}

    def apply(values: Dict[str, Any]):
        for field, value in values.items():
            setattr(client, field, value)
        _commit_client(db)

    def restore():
        db.query(Client).filter(Client.id == client.id).update(previous, synchronize_session=False)
        db.commit()

    with Saga("update_client", session=db, on_compensated=lambda: rebalance_usage(db, gym_id)) as saga:
        saga.step("update_fields", lambda: apply(changes), restore)
        if membership_changed:
            saga.step("unenroll_old", lambda: unenroll(db, old_membership_id), lambda: enroll(db, old_membership_id))
            saga.step("enroll_new", lambda: enroll(db, new_membership_id), lambda: unenroll(db, new_membership_id))
            saga.step("rebalance", lambda: rebalance_usage(db, gym_id))

    if membership_changed:
        logger.info(
            "client %s moved from membership %s to %s (gym=%s)",
            client.id, old_membership_id, new_membership_id, gym_id,
        )
    db.refresh(client)
    return client


def delete_client(db: Session, identity: Identity, client_id: int) -> None:
    gym_id = identity.gym_id
    client = get_scoped_or_404(db, Client, client_id, gym_id, "Cliente no encontrado")
    membership_id = client.membership_id
    snapshot = {column.name: getattr(client, column.name) for column in Client.__table__.columns}

    def remove_client():
        db.delete(client)
        db.commit()

    def reinsert_client():
        db.execute(Client.__table__.insert().values(**snapshot))
        db.commit()

    with Saga("delete_client", session=db, on_compensated=lambda: rebalance_usage(db, gym_id)) as saga:
        saga.step("unenroll", lambda: unenroll(db, membership_id), lambda: enroll(db, membership_id))
        saga.step("delete_client", remove_client, reinsert_client)
        saga.step("rebalance", lambda: rebalance_usage(db, gym_id))

    logger.info("client %s deleted, membership %s released (gym=%s)", client_id, membership_id, gym_id)
