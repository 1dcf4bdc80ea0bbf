from sqlalchemy import Column, Integer, String, UniqueConstraint, DateTime, JSON
from datetime import datetime
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class Gym(Base):
    __tablename__ = "gyms"
    __table_args__ = (UniqueConstraint("name", name="uq_gym_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    # street, colony, avenue, postal_code, city, state, country
    address = Column(JSON, nullable=False, default=dict)
    opening_time = Column(String(5), nullable=False)
    closing_time = Column(String(5), nullable=False)
    logo_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
