"""
Servicio de negocio para ventas de productos.

El stock (``stock_quantity``) y el contador ``sales_obtained`` de cada
producto se mueven junto con las ventas registradas:

- vender descuenta stock y suma ventas;
- cancelar devuelve el stock y resta ventas (nunca por debajo de 0);
- solo una venta cancelada puede borrarse del historial.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gym_api.core.crud import conditional_decrement, get_scoped, get_scoped_or_404
from gym_api.core.deps import Identity
from gym_api.core.errors import ConflictError, NotFoundError, ValidationError
from gym_api.core.saga import Saga
from gym_api.core.stock_rules import next_status_fields
from gym_api.models.client import Client
from gym_api.models.product import Product
from gym_api.models.product_sale import SALE_CANCELLED, SALE_SUCCESS, ProductSale


logger = logging.getLogger(__name__)


def calculate_total(unit_price: Decimal, quantity: int, sale_price: Optional[Decimal] = None) -> Decimal:
    """Total de la venta: el precio explícito si se envía, si no precio unitario por cantidad."""
    if sale_price is not None:
        return Decimal(str(sale_price)).quantize(Decimal("0.01"))
    return (Decimal(str(unit_price)) * int(quantity)).quantize(Decimal("0.01"))


def sync_product_status(db: Session, product_id: int) -> Optional[Product]:
    """Recalcula el estado del producto a partir de su stock actual y confirma."""
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        return None
    status, restock_status = next_status_fields(product.status, product.restock_status, product.stock_quantity)
    if (status, restock_status) != (product.status, product.restock_status):
        product.status = status
        product.restock_status = restock_status
        db.commit()
    return product


def _take_stock(db: Session, product: Product, quantity: int, identity: Identity) -> bool:
    taken = conditional_decrement(
        db,
        Product,
        product.id,
        "stock_quantity",
        quantity,
        extra={
            Product.sales_obtained: Product.sales_obtained + quantity,
            Product.updated_by_id: identity.id,
            Product.updated_by_type: identity.role.value,
            Product.updated_at: datetime.utcnow(),
        },
    )
    if taken:
        sync_product_status(db, product.id)
    return taken


def _return_stock(db: Session, product_id: int, quantity: int, identity: Optional[Identity] = None) -> bool:
    values = {
        Product.stock_quantity: Product.stock_quantity + quantity,
        Product.sales_obtained: case(
            (Product.sales_obtained - quantity < 0, 0),
            else_=Product.sales_obtained - quantity,
        ),
        Product.updated_at: datetime.utcnow(),
    }
    if identity is not None:
        values[Product.updated_by_id] = identity.id
        values[Product.updated_by_type] = identity.role.value
    updated = db.query(Product).filter(Product.id == product_id).update(values, synchronize_session=False)
    db.commit()
    if updated:
        sync_product_status(db, product_id)
    return updated == 1


def sell_product(
    db: Session,
    identity: Identity,
    product_id: Any,
    quantity_sold: Any,
    client_id: Any,
    sale_code: Optional[str],
    sale_price: Optional[Decimal] = None,
) -> ProductSale:
    """
    Registra una venta y descuenta el stock.

    Raises:
        ValidationError: faltan datos o la cantidad no es positiva
        NotFoundError: el producto o el cliente no existen en el gimnasio
        ConflictError: el código de venta ya existe o el stock no alcanza
    """
    gym_id = identity.gym_id
    sale_code = (sale_code or "").strip()
    if product_id is None or client_id is None or not sale_code or quantity_sold is None:
        raise ValidationError("Campos requeridos: product_id, quantity_sold, client_id, sale_code")
    try:
        quantity = int(quantity_sold)
    except (TypeError, ValueError):
        raise ValidationError("La cantidad vendida debe ser un número entero")
    if quantity <= 0:
        raise ValidationError("La cantidad vendida debe ser mayor a 0")
    if sale_price is not None and Decimal(str(sale_price)) < 0:
        raise ValidationError("El precio de venta no puede ser negativo")

    product = get_scoped_or_404(db, Product, product_id, gym_id, "Producto no encontrado en este gimnasio")
    client = get_scoped_or_404(db, Client, client_id, gym_id, "Cliente no encontrado en este gimnasio")

    if db.query(ProductSale.id).filter(ProductSale.sale_code == sale_code).first():
        raise ConflictError("Ya existe una venta con este código", details={"sale_code": sale_code})

    unit_price = Decimal(str(product.price_amount)).quantize(Decimal("0.01"))
    sale = ProductSale(
        gym_id=gym_id,
        product_id=product.id,
        product_name=product.name_product,
        unit_price=unit_price,
        quantity_sold=quantity,
        sale_code=sale_code,
        client_id=client.id,
        client_name=client.full_name or client.email or f"Cliente {client.id}",
        sale_date=datetime.utcnow(),
        seller_id=identity.id,
        seller_name=identity.name or identity.role.value,
        seller_role=identity.role.value,
        sale_status=SALE_SUCCESS,
        total_sale=calculate_total(unit_price, quantity, sale_price),
        registered_by_id=identity.id,
        registered_by_type=identity.role.value,
    )

    def take_stock():
        if not _take_stock(db, product, quantity, identity):
            db.refresh(product)
            raise ConflictError(
                f"Stock insuficiente. Stock disponible: {product.stock_quantity} {product.stock_unit}",
                details={"available": product.stock_quantity},
            )

    def insert_sale():
        db.add(sale)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError("Ya existe una venta con este código", error=str(e.orig)) from e
        db.refresh(sale)

    with Saga("sell_product", session=db) as saga:
        saga.step("take_stock", take_stock, lambda: _return_stock(db, product.id, quantity))
        saga.step("insert_sale", insert_sale)

    logger.info(
        "sale %s (%s) product=%s qty=%s gym=%s",
        sale.id, sale.sale_code, product.id, quantity, gym_id,
    )
    return sale


def cancel_sale(db: Session, identity: Identity, sale_id: Any, reason: Optional[str] = None) -> ProductSale:
    """
    Cancela una venta y devuelve el stock al producto.

    La marca de cancelación se aplica con una sentencia condicionada a que la
    venta no esté ya cancelada, así el stock se devuelve una sola vez.
    """
    gym_id = identity.gym_id
    sale = get_scoped_or_404(db, ProductSale, sale_id, gym_id, "Venta no encontrada en este gimnasio")
    if sale.sale_status == SALE_CANCELLED:
        raise ConflictError("La venta ya está cancelada")

    previous_status = sale.sale_status
    product_id = sale.product_id
    quantity = sale.quantity_sold
    now = datetime.utcnow()

    def mark_cancelled():
        updated = (
            db.query(ProductSale)
            .filter(ProductSale.id == sale.id, ProductSale.sale_status != SALE_CANCELLED)
            .update(
                {
                    ProductSale.sale_status: SALE_CANCELLED,
                    ProductSale.cancellation_reason: reason,
                    ProductSale.cancelled_by_id: identity.id,
                    ProductSale.cancelled_by_type: identity.role.value,
                    ProductSale.cancelled_at: now,
                    ProductSale.updated_by_id: identity.id,
                    ProductSale.updated_by_type: identity.role.value,
                },
                synchronize_session=False,
            )
        )
        db.commit()
        if updated != 1:
            raise ConflictError("La venta ya está cancelada")

    def unmark_cancelled():
        db.query(ProductSale).filter(ProductSale.id == sale.id).update(
            {
                ProductSale.sale_status: previous_status,
                ProductSale.cancellation_reason: None,
                ProductSale.cancelled_by_id: None,
                ProductSale.cancelled_by_type: None,
                ProductSale.cancelled_at: None,
            },
            synchronize_session=False,
        )
        db.commit()

    def return_stock():
        if product_id is None or get_scoped(db, Product, product_id, gym_id) is None:
            logger.warning("sale %s cancelled but product %s no longer exists; stock not restored", sale.id, product_id)
            return
        _return_stock(db, product_id, quantity, identity)

    with Saga("cancel_sale", session=db) as saga:
        saga.step("mark_cancelled", mark_cancelled, unmark_cancelled)
        saga.step("return_stock", return_stock)

    logger.info("sale %s cancelled by %s %s (gym=%s)", sale.id, identity.role.value, identity.id, gym_id)
    db.refresh(sale)
    return sale


def delete_sale(db: Session, identity: Identity, sale_id: Any) -> int:
    sale = get_scoped_or_404(db, ProductSale, sale_id, identity.gym_id, "Venta no encontrada en este gimnasio")
    if sale.sale_status != SALE_CANCELLED:
        raise ValidationError(
            "Solo se pueden eliminar ventas canceladas",
            details={"sale_id": sale.id, "sale_status": sale.sale_status},
        )
    deleted_id = sale.id
    db.delete(sale)
    db.commit()
    logger.info("sale %s removed from history (gym=%s)", deleted_id, identity.gym_id)
    return deleted_id


def delete_sales(db: Session, identity: Identity, sale_ids: Iterable[Any]) -> List[int]:
    """Borra varias ventas canceladas; si alguna no lo está no se borra ninguna."""
    ids = list(dict.fromkeys(int(i) for i in sale_ids))
    if not ids:
        raise ValidationError("Debe seleccionar al menos una venta")

    sales = (
        db.query(ProductSale)
        .filter(ProductSale.id.in_(ids), ProductSale.gym_id == identity.gym_id)
        .all()
    )
    found = {s.id for s in sales}
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError("Algunas ventas no existen en este gimnasio", details={"missing_ids": missing})

    not_cancelled: List[Dict[str, Any]] = [
        {"id": s.id, "sale_code": s.sale_code, "sale_status": s.sale_status}
        for s in sales
        if s.sale_status != SALE_CANCELLED
    ]
    if not_cancelled:
        raise ValidationError(
            "Solo se pueden eliminar ventas canceladas",
            details={"invalid_sales": not_cancelled},
        )

    db.query(ProductSale).filter(ProductSale.id.in_(ids)).delete(synchronize_session=False)
    db.commit()
    logger.info("removed %s cancelled sales from history (gym=%s)", len(ids), identity.gym_id)
    return ids
