from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from gym_api.core.actors import ActorNames
from gym_api.core.crud import get_scoped_or_404, paginate
from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_admin_gym, require_gym
from gym_api.core.errors import ConflictError, ValidationError
from gym_api.models.product import Product
from gym_api.models.supplier import Supplier


router = APIRouter()


class SupplierIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: str = ""
    email: Optional[EmailStr] = None


class SupplierUpdate(BaseModel):
    id: int
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class SupplierOut(BaseModel):
    id: int
    name: str
    phone: str
    email: str
    gym_id: int
    registered_by_id: int
    registered_by_type: str
    registered_by_name: Optional[str] = None
    updated_by_id: Optional[int] = None
    updated_by_type: Optional[str] = None
    updated_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SupplierPage(BaseModel):
    items: List[SupplierOut]
    total: int
    page: int
    limit: int
    pages: int


class IdIn(BaseModel):
    id: int


def _ensure_unique_email(db: Session, gym_id: int, email: str, exclude_id: Optional[int] = None):
    if not email:
        return
    query = db.query(Supplier.id).filter(Supplier.gym_id == gym_id, Supplier.email == email)
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    if query.first():
        raise ConflictError("Ya existe un proveedor con este email en este gimnasio")


def supplier_out(supplier: Supplier, names: ActorNames) -> SupplierOut:
    out = SupplierOut.model_validate(supplier)
    return out.model_copy(update=names.audit_fields(supplier))


@router.post("/create", response_model=SupplierOut, status_code=201)
def create_supplier(data: SupplierIn, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    email = (data.email or "").lower()
    _ensure_unique_email(db, identity.gym_id, email)
    supplier = Supplier(
        name=data.name.strip(),
        phone=data.phone,
        email=email,
        gym_id=identity.gym_id,
        registered_by_id=identity.id,
        registered_by_type=identity.role.value,
    )
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    return supplier_out(supplier, ActorNames(db, [supplier]))


@router.get("/all", response_model=SupplierPage)
def list_suppliers(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_gym),
    q: Optional[str] = Query(None, description="Search by name"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(Supplier).filter(Supplier.gym_id == identity.gym_id)
    if q and q.strip():
        query = query.filter(func.lower(Supplier.name).like(f"%{q.strip().lower()}%"))
    result = paginate(query.order_by(Supplier.name.asc()), page, limit)
    names = ActorNames(db, result["items"])
    result["items"] = [supplier_out(s, names) for s in result["items"]]
    return result


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    supplier = get_scoped_or_404(db, Supplier, supplier_id, identity.gym_id, "Proveedor no encontrado")
    return supplier_out(supplier, ActorNames(db, [supplier]))


@router.post("/update", response_model=SupplierOut)
def update_supplier(data: SupplierUpdate, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    supplier = get_scoped_or_404(db, Supplier, data.id, identity.gym_id, "Proveedor no encontrado")
    changes = data.model_dump(exclude_unset=True, exclude={"id"})
    if not changes:
        raise ValidationError("No hay cambios para aplicar")
    if "email" in changes:
        changes["email"] = (changes["email"] or "").lower()
        _ensure_unique_email(db, identity.gym_id, changes["email"], exclude_id=supplier.id)
    for field, value in changes.items():
        setattr(supplier, field, value)
    supplier.updated_by_id = identity.id
    supplier.updated_by_type = identity.role.value
    db.commit()
    db.refresh(supplier)
    return supplier_out(supplier, ActorNames(db, [supplier]))


@router.post("/delete")
def delete_supplier(data: IdIn, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    supplier = get_scoped_or_404(db, Supplier, data.id, identity.gym_id, "Proveedor no encontrado")
    products = db.query(Product).filter(Product.supplier_id == supplier.id).count()
    if products:
        raise ConflictError(
            "No se puede eliminar el proveedor porque tiene productos asociados",
            details={"products": products},
        )
    db.delete(supplier)
    db.commit()
    return {"message": "Proveedor eliminado correctamente"}
