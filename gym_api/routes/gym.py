from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_admin, require_staff
from gym_api.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from gym_api.core.security import create_access_token
from gym_api.core.validators import validate_time
from gym_api.models.gym import Gym
from gym_api.services.gym_service import create_gym, delete_gym


router = APIRouter()


class Address(BaseModel):
    street: str
    colony: str
    avenue: str
    postal_code: str
    city: str
    state: str
    country: str


class GymIn(BaseModel):
    name: str
    address: Address
    opening_time: str
    closing_time: str
    logo_url: Optional[str] = None

    check_times = field_validator("opening_time", "closing_time")(validate_time)


class GymUpdate(BaseModel):
    id: int
    name: Optional[str] = None
    address: Optional[Address] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    logo_url: Optional[str] = None

    check_times = field_validator("opening_time", "closing_time")(validate_time)


class GymOut(BaseModel):
    id: int
    name: str
    address: dict
    opening_time: str
    closing_time: str
    logo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GymCreated(BaseModel):
    message: str
    gym: GymOut
    token: str


class IdIn(BaseModel):
    id: int


def _own_gym(db: Session, identity: Identity, gym_id: int) -> Gym:
    gym = db.query(Gym).filter(Gym.id == gym_id).first()
    if not gym:
        raise NotFoundError("Gimnasio no encontrado")
    if gym.id != identity.gym_id:
        raise AuthorizationError("No tienes permiso para modificar este gimnasio")
    return gym


@router.post("/created", response_model=GymCreated, status_code=201)
def create(data: GymIn, db: Session = Depends(get_db), identity: Identity = Depends(require_admin)):
    gym = create_gym(db, identity, data.model_dump())
    # The caller's previous token carries no gym
    token = create_access_token(identity.id, identity.role.value, gym.id)
    return GymCreated(message="Gimnasio creado exitosamente", gym=GymOut.model_validate(gym), token=token)


@router.get("/all", response_model=List[GymOut])
def list_gyms(db: Session = Depends(get_db), identity: Identity = Depends(require_admin)):
    """Gyms visible to the administrator: only the one assigned to them."""
    if not identity.gym_id:
        return []
    return db.query(Gym).filter(Gym.id == identity.gym_id).all()


@router.get("/mygym", response_model=GymOut)
def my_gym(db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    if not identity.gym_id:
        raise NotFoundError("Este usuario no tiene gimnasio asignado")
    gym = db.query(Gym).filter(Gym.id == identity.gym_id).first()
    if not gym:
        raise NotFoundError("Gimnasio no encontrado")
    return gym


@router.post("/updated", response_model=GymOut)
def update(data: GymUpdate, db: Session = Depends(get_db), identity: Identity = Depends(require_admin)):
    gym = _own_gym(db, identity, data.id)
    changes = data.model_dump(exclude_unset=True, exclude={"id"})
    if not changes:
        raise ValidationError("No hay cambios para aplicar")
    if "name" in changes and changes["name"] != gym.name:
        if db.query(Gym.id).filter(Gym.name == changes["name"], Gym.id != gym.id).first():
            raise ConflictError("Ya existe un gimnasio con este nombre")
    for field, value in changes.items():
        setattr(gym, field, value)
    db.commit()
    db.refresh(gym)
    return gym


@router.post("/delete")
def delete(data: IdIn, db: Session = Depends(get_db), identity: Identity = Depends(require_admin)):
    gym = _own_gym(db, identity, data.id)
    delete_gym(db, gym)
    return {"message": "Gimnasio eliminado correctamente"}
