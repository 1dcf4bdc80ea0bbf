from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Integer, String, Numeric, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from gym_api.models.gym import Base


MEMBERSHIP_PERIODS = ("quincenal", "mensual", "trimestral", "anual")
MEMBERSHIP_STATUSES = ("Activado", "Desactivado")
CURRENCIES = ("MXN", "USD", "EUR")


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (CheckConstraint("cantidad_usuarios >= 0", name="ck_memberships_cantidad_usuarios"),)

    id = Column(Integer, primary_key=True, index=True)
    name_membership = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    duration_days = Column(Integer, nullable=False)
    period = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="Activado")
    currency = Column(String(3), nullable=False, default="MXN")
    color = Column(String(30), nullable=False, default="Verde")
    # Maintained by the client lifecycle and the usage rebalance, never by callers
    cantidad_usuarios = Column(Integer, nullable=False, default=0)
    porcentaje_uso = Column(Integer, nullable=False, default=0)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    gym = relationship("Gym")
