from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Integer, Numeric, ForeignKey, DateTime, String, UniqueConstraint

from gym_api.models.gym import Base


SALE_SUCCESS = "Exitosa"
SALE_PENDING = "Pendiente"  # declared, never produced
SALE_CANCELLED = "Cancelada"
SALE_STATUSES = (SALE_SUCCESS, SALE_PENDING, SALE_CANCELLED)


class ProductSale(Base):
    __tablename__ = "product_sales"
    __table_args__ = (
        UniqueConstraint("sale_code", name="uq_product_sales_sale_code"),
        CheckConstraint("quantity_sold >= 1", name="ck_product_sales_quantity_sold"),
    )

    id = Column(Integer, primary_key=True, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)

    # Snapshot of the product and client at sale time
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = Column(String(255), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity_sold = Column(Integer, nullable=False)
    sale_code = Column(String(100), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    client_name = Column(String(255), nullable=False)
    sale_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    seller_id = Column(Integer, nullable=False)
    seller_name = Column(String(255), nullable=False)
    seller_role = Column(String(20), nullable=False)
    sale_status = Column(String(20), nullable=False, default=SALE_SUCCESS, index=True)
    total_sale = Column(Numeric(10, 2), nullable=False)

    cancellation_reason = Column(String(500), nullable=True)
    cancelled_by_id = Column(Integer, nullable=True)
    cancelled_by_type = Column(String(20), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    registered_by_id = Column(Integer, nullable=False)
    registered_by_type = Column(String(20), nullable=False)
    updated_by_id = Column(Integer, nullable=True)
    updated_by_type = Column(String(20), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
