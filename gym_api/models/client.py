from datetime import datetime

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from gym_api.models.gym import Base


ACTIVE_CLIENT_STATUS = "Activo"


class Client(Base):
    __tablename__ = "clients"
    __table_args__ = (
        # At most one active client per email in a gym
        Index(
            "uq_clients_gym_active_email",
            "gym_id",
            "email",
            unique=True,
            postgresql_where=text("status = 'Activo'"),
            sqlite_where=text("status = 'Activo'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)

    first_name = Column(String(120), nullable=True)
    last_father = Column(String(120), nullable=True)
    last_mother = Column(String(120), nullable=True)
    birth_date = Column(Date, nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    rfc = Column(String(20), nullable=True)
    emergency_contact_name = Column(String(255), nullable=True)
    emergency_contact_phone = Column(String(50), nullable=True)

    membership_id = Column(Integer, ForeignKey("memberships.id", ondelete="RESTRICT"), nullable=False, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(String(30), nullable=False, default=ACTIVE_CLIENT_STATUS, index=True)

    payment_method = Column(String(50), nullable=True)
    payment_amount = Column(Numeric(10, 2), nullable=True)
    payment_currency = Column(String(3), nullable=True)

    # Audit: *_type is "Administrador" or "Colaborador"
    registered_by_id = Column(Integer, nullable=False)
    registered_by_type = Column(String(20), nullable=False)
    updated_by_id = Column(Integer, nullable=True)
    updated_by_type = Column(String(20), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    membership = relationship("Membership")

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.last_father, self.last_mother]
        return " ".join(p for p in parts if p)
