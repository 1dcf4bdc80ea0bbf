from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, condecimal
from sqlalchemy.orm import Session, joinedload

from gym_api.core.actors import ActorNames
from gym_api.core.crud import get_scoped_or_404, paginate
from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_gym
from gym_api.core.errors import ValidationError
from gym_api.models.client import Client
from gym_api.services.client_service import create_client, delete_client, update_client


router = APIRouter()


class FullName(BaseModel):
    first: Optional[str] = None
    last_father: Optional[str] = None
    last_mother: Optional[str] = None


class EmergencyContact(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class Payment(BaseModel):
    method: Optional[str] = None
    amount: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    currency: Optional[str] = None


class ClientIn(BaseModel):
    full_name: Optional[FullName] = None
    birth_date: Optional[date] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    rfc: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None
    membership_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    payment: Optional[Payment] = None


class ClientUpdate(BaseModel):
    id: int
    full_name: Optional[FullName] = None
    birth_date: Optional[date] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    rfc: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None
    membership_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    payment: Optional[Payment] = None


class ClientOut(BaseModel):
    id: int
    full_name: FullName
    birth_date: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    rfc: Optional[str] = None
    emergency_contact: EmergencyContact
    membership_id: int
    membership_name: Optional[str] = None
    membership_price: Optional[Decimal] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str
    payment: Payment
    gym_id: int
    registered_by_id: int
    registered_by_type: str
    registered_by_name: Optional[str] = None
    updated_by_id: Optional[int] = None
    updated_by_type: Optional[str] = None
    updated_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ClientPage(BaseModel):
    items: List[ClientOut]
    total: int
    page: int
    limit: int
    pages: int


class IdIn(BaseModel):
    id: int


# Nested payload groups -> flat Client columns
NESTED_COLUMNS = {
    "full_name": {"first": "first_name", "last_father": "last_father", "last_mother": "last_mother"},
    "emergency_contact": {"name": "emergency_contact_name", "phone": "emergency_contact_phone"},
    "payment": {"method": "payment_method", "amount": "payment_amount", "currency": "payment_currency"},
}


def flatten_client_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Convierte los grupos anidados del payload a columnas planas de ``Client``.

    Solo se copian las claves enviadas, así una actualización parcial de un
    grupo no borra el resto de sus campos.
    """
    flat: Dict[str, Any] = {}
    for key, value in payload.items():
        mapping = NESTED_COLUMNS.get(key)
        if mapping is None:
            flat[key] = value
            continue
        for nested_key, nested_value in (value or {}).items():
            flat[mapping[nested_key]] = nested_value
    return flat


def client_out(client: Client, names: ActorNames) -> ClientOut:
    membership = client.membership
    return ClientOut(
        id=client.id,
        full_name=FullName(first=client.first_name, last_father=client.last_father, last_mother=client.last_mother),
        birth_date=client.birth_date,
        email=client.email,
        phone=client.phone,
        rfc=client.rfc,
        emergency_contact=EmergencyContact(name=client.emergency_contact_name, phone=client.emergency_contact_phone),
        membership_id=client.membership_id,
        membership_name=membership.name_membership if membership else None,
        membership_price=membership.price if membership else None,
        start_date=client.start_date,
        end_date=client.end_date,
        status=client.status,
        payment=Payment(method=client.payment_method, amount=client.payment_amount, currency=client.payment_currency),
        gym_id=client.gym_id,
        registered_by_id=client.registered_by_id,
        registered_by_type=client.registered_by_type,
        updated_by_id=client.updated_by_id,
        updated_by_type=client.updated_by_type,
        created_at=client.created_at,
        updated_at=client.updated_at,
        **names.audit_fields(client),
    )


@router.post("/created", response_model=ClientOut, status_code=201)
def create(data: ClientIn, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    client = create_client(db, identity, flatten_client_payload(data.model_dump(exclude_none=True)))
    return client_out(client, ActorNames(db, [client]))


@router.post("/updated", response_model=ClientOut)
def update(data: ClientUpdate, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    changes = flatten_client_payload(data.model_dump(exclude_unset=True, exclude={"id"}))
    if not changes:
        raise ValidationError("No hay cambios para aplicar")
    client = update_client(db, identity, data.id, changes)
    return client_out(client, ActorNames(db, [client]))


@router.post("/delete")
def delete(data: IdIn, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    delete_client(db, identity, data.id)
    return {"message": "Cliente eliminado correctamente"}


@router.get("/all", response_model=ClientPage)
def list_clients(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_gym),
    status: Optional[str] = Query(None),
    membership_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    query = (
        db.query(Client)
        .options(joinedload(Client.membership))
        .filter(Client.gym_id == identity.gym_id)
    )
    if status:
        query = query.filter(Client.status == status)
    if membership_id is not None:
        query = query.filter(Client.membership_id == membership_id)
    result = paginate(query.order_by(Client.created_at.desc(), Client.id.desc()), page, limit)
    names = ActorNames(db, result["items"])
    result["items"] = [client_out(c, names) for c in result["items"]]
    return result


@router.get("/{client_id}", response_model=ClientOut)
def get_client(client_id: int, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    client = get_scoped_or_404(db, Client, client_id, identity.gym_id, "Cliente no encontrado")
    return client_out(client, ActorNames(db, [client]))
