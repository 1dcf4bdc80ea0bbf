from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from gym_api.models.gym import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False, default="")
    email = Column(String(255), nullable=False, default="", index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)
    registered_by_id = Column(Integer, nullable=False)
    registered_by_type = Column(String(20), nullable=False)
    updated_by_id = Column(Integer, nullable=True)
    updated_by_type = Column(String(20), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
