from sqlalchemy import CheckConstraint, Column, Integer, String, Numeric, ForeignKey, DateTime, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime

from gym_api.models.gym import Base


STOCK_UNITS = ("pieza", "kg", "litro", "gramo", "paquete", "caja")
PRODUCT_CATEGORIES = ("Equipamento", "Suplementos", "Ropa", "Accesorios", "Bebidas", "Otros")
PRODUCT_STATUSES = ("Activo", "Inactivo", "Agotado", "Cancelado")


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_quantity"),
        CheckConstraint("sales_obtained >= 0", name="ck_products_sales_obtained"),
        Index(
            "uq_products_gym_barcode",
            "gym_id",
            "barcode",
            unique=True,
            postgresql_where=text("barcode <> ''"),
            sqlite_where=text("barcode <> ''"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name_product = Column(String(255), nullable=False, index=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    stock_unit = Column(String(20), nullable=False)
    price_amount = Column(Numeric(10, 2), nullable=False, default=0)
    price_currency = Column(String(3), nullable=False, default="MXN")
    category = Column(String(50), nullable=False, index=True)
    barcode = Column(String(100), nullable=False, default="", index=True)  # unique per gym when not empty
    purchase_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    status = Column(String(20), nullable=False, default="Activo")
    # Status to restore once an "Agotado" product gets stock again
    restock_status = Column(String(20), nullable=False, default="Activo")
    sales_obtained = Column(Integer, nullable=False, default=0)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=True, index=True)
    image_url = Column(String(2000), nullable=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)

    registered_by_id = Column(Integer, nullable=False)
    registered_by_type = Column(String(20), nullable=False)
    updated_by_id = Column(Integer, nullable=True)
    updated_by_type = Column(String(20), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    supplier = relationship("Supplier")
