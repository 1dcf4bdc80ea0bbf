from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_admin
from gym_api.core.errors import AuthenticationError, ConflictError, NotFoundError
from gym_api.core.roles import Role
from gym_api.core.security import create_access_token, hash_password, verify_password
from gym_api.models.admin import Admin
from gym_api.models.gym import Gym
from gym_api.routes.gym import GymIn, GymOut


router = APIRouter()


class AdminRegister(BaseModel):
    username: Optional[str] = None
    name: Optional[str] = None
    last_name: Optional[str] = None
    email: EmailStr
    password: str
    admin_code: Optional[str] = None


class AdminRegisterWithGym(AdminRegister):
    gym: GymIn


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AdminOut(BaseModel):
    id: int
    username: Optional[str] = None
    name: Optional[str] = None
    last_name: Optional[str] = None
    email: EmailStr
    gym_id: Optional[int] = None
    role: str = Role.admin.value

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    message: str
    token: str
    admin: AdminOut
    gym: Optional[GymOut] = None


def _new_admin(db: Session, data: AdminRegister, gym_id: Optional[int] = None) -> Admin:
    if db.query(Admin).filter(Admin.email == data.email).first():
        raise ConflictError("El correo ya está registrado")
    admin = Admin(
        username=data.username,
        name=data.name,
        last_name=data.last_name,
        email=data.email,
        hashed_password=hash_password(data.password),
        admin_code=data.admin_code,
        gym_id=gym_id,
    )
    db.add(admin)
    return admin


@router.post("/register", response_model=AuthResponse, status_code=201)
def register_admin(data: AdminRegister, db: Session = Depends(get_db)):
    admin = _new_admin(db, data)
    db.commit()
    db.refresh(admin)
    token = create_access_token(admin.id, Role.admin.value, admin.gym_id)
    return AuthResponse(message="Administrador creado exitosamente", token=token, admin=AdminOut.model_validate(admin))


@router.post("/register-with-gym", response_model=AuthResponse, status_code=201)
def register_with_gym(data: AdminRegisterWithGym, db: Session = Depends(get_db)):
    # An existing gym with the same name is joined instead of duplicated
    gym = db.query(Gym).filter(Gym.name == data.gym.name).first()
    if gym is None:
        gym = Gym(**data.gym.model_dump())
        db.add(gym)
        db.flush()
    admin = _new_admin(db, data, gym_id=gym.id)
    db.commit()
    db.refresh(admin)
    db.refresh(gym)
    token = create_access_token(admin.id, Role.admin.value, admin.gym_id)
    return AuthResponse(
        message="Administrador y gimnasio registrados exitosamente",
        token=token,
        admin=AdminOut.model_validate(admin),
        gym=GymOut.model_validate(gym),
    )


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    admin = db.query(Admin).filter(Admin.email == data.email).first()
    if not admin:
        raise NotFoundError("Administrador no encontrado")
    if not verify_password(data.password, admin.hashed_password):
        raise AuthenticationError("Contraseña incorrecta")
    token = create_access_token(admin.id, Role.admin.value, admin.gym_id)
    return AuthResponse(
        message="Inicio de sesión exitoso",
        token=token,
        admin=AdminOut.model_validate(admin),
        gym=GymOut.model_validate(admin.gym) if admin.gym else None,
    )


@router.get("/me", response_model=AdminOut)
def me(identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(Admin).filter(Admin.id == identity.id).first()
