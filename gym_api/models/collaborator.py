from datetime import datetime

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint, JSON
from sqlalchemy.orm import relationship

from gym_api.models.gym import Base


class Collaborator(Base):
    __tablename__ = "collaborators"
    __table_args__ = (
        UniqueConstraint("email", name="uq_collaborators_email"),
        UniqueConstraint("username", name="uq_collaborators_username"),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=True)
    name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    email = Column(String(255), index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    collaborator_code = Column(String(20), nullable=False)
    color = Column(String(30), nullable=False, default="Verde")
    working_days = Column(JSON, nullable=True)
    working_start_time = Column(String(5), nullable=True)
    working_end_time = Column(String(5), nullable=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    gym = relationship("Gym")

    @property
    def full_name(self) -> str:
        return f"{self.name or ''} {self.last_name or ''}".strip()
