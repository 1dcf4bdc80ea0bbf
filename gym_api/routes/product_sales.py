from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, condecimal
from sqlalchemy.orm import Session

from gym_api.core.crud import get_scoped_or_404, paginate
from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_admin_gym, require_gym
from gym_api.models.product_sale import ProductSale
from gym_api.services.sale_ledger import cancel_sale, delete_sale, delete_sales, sell_product


router = APIRouter()


class SellRequest(BaseModel):
    # Presence of the required fields is checked by sell_product
    product_id: Optional[int] = None
    quantity_sold: Optional[int] = None
    client_id: Optional[int] = None
    sale_code: Optional[str] = None
    sale_price: Optional[condecimal(max_digits=10, decimal_places=2)] = None


class CancelRequest(BaseModel):
    id: int
    reason: Optional[str] = Field(None, max_length=500)


class IdIn(BaseModel):
    id: int


class BulkDeleteRequest(BaseModel):
    ids: List[int]


class SaleOut(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    unit_price: Decimal
    quantity_sold: int
    sale_code: str
    client_id: Optional[int] = None
    client_name: str
    sale_date: datetime
    seller_id: int
    seller_name: str
    seller_role: str
    sale_status: str
    total_sale: Decimal
    cancellation_reason: Optional[str] = None
    cancelled_by_id: Optional[int] = None
    cancelled_by_type: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    gym_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SalePage(BaseModel):
    items: List[SaleOut]
    total: int
    page: int
    limit: int
    pages: int


class SaleResult(BaseModel):
    message: str
    sale: SaleOut


@router.post("/sell", response_model=SaleResult, status_code=201)
def sell(data: SellRequest, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    sale = sell_product(
        db,
        identity,
        product_id=data.product_id,
        quantity_sold=data.quantity_sold,
        client_id=data.client_id,
        sale_code=data.sale_code,
        sale_price=data.sale_price,
    )
    return SaleResult(message="Venta registrada exitosamente", sale=SaleOut.model_validate(sale))


@router.post("/cancel", response_model=SaleResult)
def cancel(data: CancelRequest, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    sale = cancel_sale(db, identity, data.id, data.reason)
    return SaleResult(message="Venta cancelada y stock restaurado", sale=SaleOut.model_validate(sale))


@router.post("/delete")
def delete(data: IdIn, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    deleted_id = delete_sale(db, identity, data.id)
    return {"message": "Venta eliminada del historial", "id": deleted_id}


@router.post("/delete-bulk")
def delete_bulk(data: BulkDeleteRequest, db: Session = Depends(get_db), identity: Identity = Depends(require_admin_gym)):
    ids = delete_sales(db, identity, data.ids)
    return {"message": f"{len(ids)} ventas eliminadas del historial", "deleted_ids": ids}


@router.get("/", response_model=SalePage)
def list_sales(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_gym),
    sale_status: Optional[str] = Query(None),
    client_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(ProductSale).filter(ProductSale.gym_id == identity.gym_id)
    if sale_status:
        query = query.filter(ProductSale.sale_status == sale_status)
    if client_id is not None:
        query = query.filter(ProductSale.client_id == client_id)
    if product_id is not None:
        query = query.filter(ProductSale.product_id == product_id)
    if start_date:
        query = query.filter(ProductSale.sale_date >= datetime.combine(start_date, time.min))
    if end_date:
        # end_date is inclusive
        query = query.filter(ProductSale.sale_date < datetime.combine(end_date + timedelta(days=1), time.min))
    return paginate(query.order_by(ProductSale.sale_date.desc(), ProductSale.id.desc()), page, limit)


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(sale_id: int, db: Session = Depends(get_db), identity: Identity = Depends(require_gym)):
    return get_scoped_or_404(db, ProductSale, sale_id, identity.gym_id, "Venta no encontrada")
