"""
Referencias a usuarios del sistema (administradores o colaboradores).

Los campos de auditoría guardan ``*_by_id`` y ``*_by_type``; el tipo decide
en qué tabla vive el usuario. Este módulo concentra esa resolución.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

from sqlalchemy.orm import Session

from gym_api.core.roles import Role
from gym_api.models.admin import Admin
from gym_api.models.collaborator import Collaborator


Actor = Union[Admin, Collaborator]


@dataclass(frozen=True)
class ActorRef:
    kind: Role
    id: int

    @classmethod
    def from_fields(cls, actor_id: Optional[int], actor_type: Optional[str]) -> Optional["ActorRef"]:
        if actor_id is None or not actor_type:
            return None
        try:
            return cls(Role(actor_type), int(actor_id))
        except ValueError:
            return None


def _model_for(kind: Role):
    return Admin if kind == Role.admin else Collaborator


def load_actor(db: Session, ref: ActorRef) -> Optional[Actor]:
    model = _model_for(ref.kind)
    return db.query(model).filter(model.id == ref.id).first()


def resolve_actor_names(db: Session, refs: Iterable[Optional[ActorRef]]) -> Dict[ActorRef, str]:
    """Busca el nombre de cada referencia con una consulta por tabla."""
    wanted: Dict[Role, set] = {Role.admin: set(), Role.collaborator: set()}
    for ref in refs:
        if ref is not None:
            wanted[ref.kind].add(ref.id)

    names: Dict[ActorRef, str] = {}
    for kind, ids in wanted.items():
        if not ids:
            continue
        model = _model_for(kind)
        for actor in db.query(model).filter(model.id.in_(ids)).all():
            names[ActorRef(kind, actor.id)] = actor.full_name
    return names


class ActorNames:
    """Per-request cache used by list endpoints to attach registered_by/updated_by names."""

    def __init__(self, db: Session, records: Iterable):
        records = list(records)
        refs = []
        for record in records:
            refs.append(ActorRef.from_fields(record.registered_by_id, record.registered_by_type))
            refs.append(ActorRef.from_fields(getattr(record, "updated_by_id", None), getattr(record, "updated_by_type", None)))
        self._names = resolve_actor_names(db, refs)

    def name(self, actor_id: Optional[int], actor_type: Optional[str]) -> Optional[str]:
        ref = ActorRef.from_fields(actor_id, actor_type)
        if ref is None:
            return None
        return self._names.get(ref)

    def audit_fields(self, record) -> Dict[str, Optional[str]]:
        return {
            "registered_by_name": self.name(record.registered_by_id, record.registered_by_type),
            "updated_by_name": self.name(getattr(record, "updated_by_id", None), getattr(record, "updated_by_type", None)),
        }
