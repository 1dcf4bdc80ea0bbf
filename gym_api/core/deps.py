from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from gym_api.core.actors import ActorRef, load_actor
from gym_api.core.database import get_db
from gym_api.core.errors import AuthenticationError, AuthorizationError, ValidationError
from gym_api.core.roles import ADMIN_ROLES, STAFF_ROLES, Role
from gym_api.core.security import decode_token


@dataclass(frozen=True)
class Identity:
    id: int
    role: Role
    gym_id: Optional[int]
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def ref(self) -> ActorRef:
        return ActorRef(self.role, self.id)


def get_current_identity(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None),
) -> Identity:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Token no proporcionado")
    token = authorization.split(" ", 1)[1]
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        raise AuthorizationError("Token inválido o expirado")

    ref = ActorRef.from_fields(payload.get("sub"), payload.get("role"))
    if ref is None:
        raise AuthorizationError("Token inválido o expirado")
    actor = load_actor(db, ref)
    if actor is None:
        raise AuthenticationError("Usuario no encontrado")
    # The stored row is authoritative for the gym: tokens issued before a gym
    # was created or deleted must not carry a stale tenant
    return Identity(id=actor.id, role=ref.kind, gym_id=actor.gym_id, name=actor.full_name)


def require_staff(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role not in STAFF_ROLES:
        raise AuthorizationError("Acceso denegado")
    return identity


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role not in ADMIN_ROLES:
        raise AuthorizationError("Acceso denegado: solo administradores")
    return identity


def require_gym(identity: Identity = Depends(require_staff)) -> Identity:
    if not identity.gym_id:
        raise ValidationError("Tu usuario no tiene un gimnasio asignado. Asigna uno antes de continuar.")
    return identity


def require_admin_gym(identity: Identity = Depends(require_admin)) -> Identity:
    if not identity.gym_id:
        raise ValidationError("Tu usuario no tiene un gimnasio asignado. Asigna uno antes de continuar.")
    return identity
