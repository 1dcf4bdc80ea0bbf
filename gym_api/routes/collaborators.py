import random
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gym_api.core.crud import paginate
from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_admin_gym, require_staff
from gym_api.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from gym_api.core.roles import Role
from gym_api.core.security import create_access_token, hash_password, verify_password
from gym_api.models.collaborator import Collaborator
from gym_api.core.validators import validate_time


router = APIRouter()

WEEK_DAYS = ("Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo")


def collaborator_code(name: str, last_name: str) -> str:
    """Iniciales de apellidos y nombres en mayúsculas seguidas de 4 dígitos."""
    words = last_name.split() + name.split()
    initials = "".join(w[0] for w in words if w).upper()
    return f"{initials}{random.randint(0, 9999):04d}"


def _check_days(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    invalid = [d for d in value if d not in WEEK_DAYS]
    if invalid:
        raise ValueError(f"Días inválidos: {', '.join(invalid)}")
    return value


class CollaboratorRegister(BaseModel):
    username: Optional[str] = None
    name: str
    last_name: str
    email: EmailStr
    password: str
    color: str = "Verde"
    working_days: Optional[List[str]] = None
    working_start_time: Optional[str] = None
    working_end_time: Optional[str] = None

    check_times = field_validator("working_start_time", "working_end_time")(validate_time)
    check_working_days = field_validator("working_days")(_check_days)


class CollaboratorUpdate(BaseModel):
    id: int
    username: Optional[str] = None
    name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    color: Optional[str] = None
    working_days: Optional[List[str]] = None
    working_start_time: Optional[str] = None
    working_end_time: Optional[str] = None

    check_times = field_validator("working_start_time", "working_end_time")(validate_time)
    check_working_days = field_validator("working_days")(_check_days)


class CollaboratorOut(BaseModel):
    id: int
    username: Optional[str] = None
    name: str
    last_name: str
    email: EmailStr
    collaborator_code: str
    color: str
    working_days: Optional[List[str]] = None
    working_start_time: Optional[str] = None
    working_end_time: Optional[str] = None
    gym_id: Optional[int] = None
    role: str = Role.collaborator.value
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CollaboratorPage(BaseModel):
    items: List[CollaboratorOut]
    total: int
    page: int
    limit: int
    pages: int


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    message: str
    token: str
    collaborator: CollaboratorOut


class IdIn(BaseModel):
    id: int


def _ensure_unique(db: Session, email: Optional[str], username: Optional[str], exclude_id: Optional[int] = None):
    if email:
        query = db.query(Collaborator.id).filter(Collaborator.email == email)
        if exclude_id is not None:
            query = query.filter(Collaborator.id != exclude_id)
        if query.first():
            raise ConflictError("El correo ya está registrado")
    if username:
        query = db.query(Collaborator.id).filter(Collaborator.username == username)
        if exclude_id is not None:
            query = query.filter(Collaborator.id != exclude_id)
        if query.first():
            raise ConflictError("El nombre de usuario ya está en uso")


@router.post("/register", response_model=CollaboratorOut, status_code=201)
def register(data: CollaboratorRegister, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    _ensure_unique(db, data.email, data.username)
    values = data.model_dump(exclude={"password"})
    collaborator = Collaborator(
        **values,
        hashed_password=hash_password(data.password),
        collaborator_code=collaborator_code(data.name, data.last_name),
        gym_id=identity.gym_id,
    )
    db.add(collaborator)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("El colaborador ya existe", error=str(e.orig)) from e
    db.refresh(collaborator)
    return collaborator


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    collaborator = db.query(Collaborator).filter(Collaborator.email == data.email).first()
    if not collaborator:
        raise NotFoundError("Colaborador no encontrado")
    if not verify_password(data.password, collaborator.hashed_password):
        raise AuthenticationError("Contraseña incorrecta")
    token = create_access_token(collaborator.id, Role.collaborator.value, collaborator.gym_id)
    return LoginResponse(
        message="Inicio de sesión exitoso",
        token=token,
        collaborator=CollaboratorOut.model_validate(collaborator),
    )


@router.get("/me", response_model=CollaboratorOut)
def me(db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    if identity.role != Role.collaborator:
        raise NotFoundError("Colaborador no encontrado")
    return db.query(Collaborator).filter(Collaborator.id == identity.id).first()


@router.get("/all", response_model=CollaboratorPage)
def list_collaborators(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin_gym),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    query = (
        db.query(Collaborator)
        .filter(Collaborator.gym_id == identity.gym_id)
        .order_by(Collaborator.name.asc())
    )
    return paginate(query, page, limit)


@router.post("/updated", response_model=CollaboratorOut)
def update(data: CollaboratorUpdate, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    collaborator = (
        db.query(Collaborator)
        .filter(Collaborator.id == data.id, Collaborator.gym_id == identity.gym_id)
        .first()
    )
    if not collaborator:
        raise NotFoundError("Colaborador no encontrado")
    changes = data.model_dump(exclude_unset=True, exclude={"id"})
    if not changes:
        raise ValidationError("No hay cambios para aplicar")
    _ensure_unique(db, changes.get("email"), changes.get("username"), exclude_id=collaborator.id)

    password = changes.pop("password", None)
    if password:
        collaborator.hashed_password = hash_password(password)
    for field, value in changes.items():
        setattr(collaborator, field, value)
    db.commit()
    db.refresh(collaborator)
    return collaborator


@router.post("/delete")
def delete(data: IdIn, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    collaborator = (
        db.query(Collaborator)
        .filter(Collaborator.id == data.id, Collaborator.gym_id == identity.gym_id)
        .first()
    )
    if not collaborator:
        raise NotFoundError("Colaborador no encontrado")
    db.delete(collaborator)
    db.commit()
    return {"message": "Colaborador eliminado correctamente"}
