from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, condecimal, field_validator
from sqlalchemy.orm import Session

from gym_api.core.crud import get_scoped_or_404, paginate
from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_admin_gym, require_gym
from gym_api.core.errors import ConflictError, ValidationError
from gym_api.core.validators import one_of
from gym_api.models.client import Client
from gym_api.models.membership import CURRENCIES, MEMBERSHIP_PERIODS, MEMBERSHIP_STATUSES, Membership
from gym_api.services.membership_usage import rebalance_usage


router = APIRouter()


class MembershipIn(BaseModel):
    name_membership: str = Field(min_length=1, max_length=255)
    description: str = ""
    price: condecimal(max_digits=10, decimal_places=2, ge=0)
    duration_days: int = Field(gt=0)
    period: str
    status: str = "Activado"
    currency: str = "MXN"
    color: str = "Verde"

    check_period = field_validator("period")(one_of(MEMBERSHIP_PERIODS))
    check_status = field_validator("status")(one_of(MEMBERSHIP_STATUSES))
    check_currency = field_validator("currency")(one_of(CURRENCIES))


class MembershipUpdate(BaseModel):
    # cantidad_usuarios and porcentaje_uso belong to the client lifecycle
    id: int
    name_membership: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    duration_days: Optional[int] = Field(None, gt=0)
    period: Optional[str] = None
    status: Optional[str] = None
    currency: Optional[str] = None
    color: Optional[str] = None

    check_period = field_validator("period")(one_of(MEMBERSHIP_PERIODS))
    check_status = field_validator("status")(one_of(MEMBERSHIP_STATUSES))
    check_currency = field_validator("currency")(one_of(CURRENCIES))


class MembershipOut(BaseModel):
    id: int
    name_membership: str
    description: str
    price: Decimal
    duration_days: int
    period: str
    status: str
    currency: str
    color: str
    cantidad_usuarios: int
    porcentaje_uso: int
    gym_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MembershipPage(BaseModel):
    items: List[MembershipOut]
    total: int
    page: int
    limit: int
    pages: int


class RebalanceOut(BaseModel):
    message: str
    usage: Dict[int, int]


class IdIn(BaseModel):
    id: int


@router.get("/", response_model=MembershipPage)
def list_memberships(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_gym),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(Membership).filter(Membership.gym_id == identity.gym_id)
    if status:
        query = query.filter(Membership.status == status)
    return paginate(query.order_by(Membership.created_at.desc(), Membership.id.desc()), page, limit)


@router.get("/{membership_id}", response_model=MembershipOut)
def get_membership(membership_id: int, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    return get_scoped_or_404(db, Membership, membership_id, identity.gym_id, "Membresía no encontrada")


@router.post("/created", response_model=MembershipOut, status_code=201)
def create_membership(data: MembershipIn, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    membership = Membership(**data.model_dump(), gym_id=identity.gym_id, cantidad_usuarios=0, porcentaje_uso=0)
    db.add(membership)
    db.commit()
    db.refresh(membership)
    return membership


@router.post("/updated", response_model=MembershipOut)
def update_membership(data: MembershipUpdate, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    membership = get_scoped_or_404(db, Membership, data.id, identity.gym_id, "Membresía no encontrada")
    changes = data.model_dump(exclude_unset=True, exclude={"id"})
    if not changes:
        raise ValidationError("No hay cambios para aplicar")
    for field, value in changes.items():
        setattr(membership, field, value)
    db.commit()
    db.refresh(membership)
    return membership


@router.post("/delete")
def delete_membership(data: IdIn, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    membership = get_scoped_or_404(db, Membership, data.id, identity.gym_id, "Membresía no encontrada")
    clients = db.query(Client).filter(Client.membership_id == membership.id).count()
    if clients:
        raise ConflictError(
            "No se puede eliminar la membresía porque tiene clientes asociados",
            details={"clients": clients},
        )
    db.delete(membership)
    db.commit()
    rebalance_usage(db, identity.gym_id)
    return {"message": "Membresía eliminada correctamente"}


@router.post("/rebalance", response_model=RebalanceOut)
def rebalance(db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    usage = rebalance_usage(db, identity.gym_id)
    return RebalanceOut(message="Porcentajes de uso recalculados", usage=usage)
