import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, condecimal, field_validator
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gym_api.core.actors import ActorNames
from gym_api.core.crud import get_scoped_or_404, paginate
from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_admin_gym, require_gym
from gym_api.core.errors import ConflictError, ValidationError
from gym_api.core.validators import one_of
from gym_api.core.stock_rules import OUT_OF_STOCK, next_status_fields
from gym_api.models.membership import CURRENCIES
from gym_api.models.product import PRODUCT_CATEGORIES, PRODUCT_STATUSES, STOCK_UNITS, Product
from gym_api.models.supplier import Supplier
from gym_api.routes.product_sales import SaleResult, sell


router = APIRouter()
logger = logging.getLogger(__name__)


class ProductIn(BaseModel):
    name_product: str = Field(min_length=1, max_length=255)
    stock_quantity: int = Field(0, ge=0)
    stock_unit: str
    price_amount: condecimal(max_digits=10, decimal_places=2, ge=0) = 0
    price_currency: str = "MXN"
    category: str
    barcode: str = ""
    purchase_date: Optional[datetime] = None
    status: str = "Activo"
    supplier_id: Optional[int] = None
    image_url: Optional[str] = None

    check_unit = field_validator("stock_unit")(one_of(STOCK_UNITS))
    check_currency = field_validator("price_currency")(one_of(CURRENCIES))
    check_category = field_validator("category")(one_of(PRODUCT_CATEGORIES))
    check_status = field_validator("status")(one_of(PRODUCT_STATUSES))


class ProductUpdate(BaseModel):
    # sales_obtained only moves with sales
    id: int
    name_product: Optional[str] = Field(None, min_length=1, max_length=255)
    stock_quantity: Optional[int] = Field(None, ge=0)
    stock_unit: Optional[str] = None
    price_amount: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    price_currency: Optional[str] = None
    category: Optional[str] = None
    barcode: Optional[str] = None
    purchase_date: Optional[datetime] = None
    status: Optional[str] = None
    supplier_id: Optional[int] = None
    image_url: Optional[str] = None

    check_unit = field_validator("stock_unit")(one_of(STOCK_UNITS))
    check_currency = field_validator("price_currency")(one_of(CURRENCIES))
    check_category = field_validator("category")(one_of(PRODUCT_CATEGORIES))
    check_status = field_validator("status")(one_of(PRODUCT_STATUSES))


class ProductOut(BaseModel):
    id: int
    name_product: str
    stock_quantity: int
    stock_unit: str
    price_amount: Decimal
    price_currency: str
    category: str
    barcode: str
    purchase_date: Optional[datetime] = None
    status: str
    sales_obtained: int
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = None
    image_url: Optional[str] = None
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


class ProductPage(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    limit: int
    pages: int


class IdIn(BaseModel):
    id: int


def _ensure_unique_barcode(db: Session, gym_id: int, barcode: str, exclude_id: Optional[int] = None):
    if not barcode:
        return
    query = db.query(Product.id).filter(Product.gym_id == gym_id, Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("Ya existe un producto con este código de barras", details={"barcode": barcode})


def product_out(product: Product, names: ActorNames) -> ProductOut:
    extra = names.audit_fields(product)
    extra["supplier_name"] = product.supplier.name if product.supplier else None
    return ProductOut.model_validate(product).model_copy(update=extra)


@router.post("/create", response_model=ProductOut, status_code=201)
def create_product(data: ProductIn, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    gym_id = identity.gym_id
    barcode = data.barcode.strip()
    _ensure_unique_barcode(db, gym_id, barcode)
    if data.supplier_id is not None:
        get_scoped_or_404(db, Supplier, data.supplier_id, gym_id, "Proveedor no encontrado en este gimnasio")

    values = data.model_dump(exclude={"barcode", "status", "purchase_date"})
    status, restock_status = next_status_fields(data.status, data.status, data.stock_quantity)
    product = Product(
        **values,
        barcode=barcode,
        purchase_date=data.purchase_date or datetime.utcnow(),
        status=status,
        restock_status=restock_status if restock_status != OUT_OF_STOCK else "Activo",
        sales_obtained=0,
        gym_id=gym_id,
        registered_by_id=identity.id,
        registered_by_type=identity.role.value,
    )
    db.add(product)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("No se pudo registrar el producto", error=str(e.orig)) from e
    db.refresh(product)
    logger.info("product %s created (gym=%s stock=%s)", product.id, gym_id, product.stock_quantity)
    return product_out(product, ActorNames(db, [product]))


@router.get("/all", response_model=ProductPage)
def list_products(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_gym),
    q: Optional[str] = Query(None, description="Search by name or barcode"),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    supplier_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(Product).filter(Product.gym_id == identity.gym_id)
    if q and q.strip():
        term = q.strip().lower()
        query = query.filter(
            or_(
                func.lower(Product.name_product).like(f"%{term}%"),
                Product.barcode == q.strip(),
            )
        )
    if category:
        query = query.filter(Product.category == category)
    if status:
        query = query.filter(Product.status == status)
    if supplier_id is not None:
        query = query.filter(Product.supplier_id == supplier_id)
    result = paginate(query.order_by(Product.name_product.asc()), page, limit)
    names = ActorNames(db, result["items"])
    result["items"] = [product_out(p, names) for p in result["items"]]
    return result


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    product = get_scoped_or_404(db, Product, product_id, identity.gym_id, "Producto no encontrado")
    return product_out(product, ActorNames(db, [product]))


@router.post("/update", response_model=ProductOut)
def update_product(data: ProductUpdate, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    gym_id = identity.gym_id
    product = get_scoped_or_404(db, Product, data.id, gym_id, "Producto no encontrado")
    changes = data.model_dump(exclude_unset=True, exclude={"id"})
    if not changes:
        raise ValidationError("No hay cambios para aplicar")

    if "barcode" in changes:
        changes["barcode"] = (changes["barcode"] or "").strip()
        _ensure_unique_barcode(db, gym_id, changes["barcode"], exclude_id=product.id)
    if changes.get("supplier_id") is not None:
        get_scoped_or_404(db, Supplier, changes["supplier_id"], gym_id, "Proveedor no encontrado en este gimnasio")
    for field in ("stock_unit", "price_currency", "category", "name_product", "price_amount", "stock_quantity"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    # Status always follows the resulting stock
    current_status, restock_status = product.status, product.restock_status
    requested = changes.pop("status", None)
    if requested:
        current_status = requested
        if requested != OUT_OF_STOCK:
            restock_status = requested
    quantity = changes.get("stock_quantity", product.stock_quantity)
    changes["status"], changes["restock_status"] = next_status_fields(current_status, restock_status, quantity)

    for field, value in changes.items():
        setattr(product, field, value)
    product.updated_by_id = identity.id
    product.updated_by_type = identity.role.value
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("No se pudo actualizar el producto", error=str(e.orig)) from e
    db.refresh(product)
    return product_out(product, ActorNames(db, [product]))


@router.post("/delete")
def delete_product(data: IdIn, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    product = get_scoped_or_404(db, Product, data.id, identity.gym_id, "Producto no encontrado")
    db.delete(product)
    db.commit()
    logger.info("product %s deleted (gym=%s)", data.id, identity.gym_id)
    return {"message": "Producto eliminado correctamente"}


# Same ledger operation as /product-sales/sell
router.add_api_route("/sell", sell, methods=["POST"], response_model=SaleResult, status_code=201)
