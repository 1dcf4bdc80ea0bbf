from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from datetime import datetime

from gym_api.models.gym import Base


NOTE_CATEGORIES = (
    "nota",
    "recordatorio",
    "reporte",
    "curso",
    "capacitacion",
    "productos",
    "soporte",
    "quejas",
)


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String(30), nullable=False, default="nota", index=True)

    # Owner of the note
    user_id = Column(Integer, nullable=False, index=True)
    user_type = Column(String(20), nullable=False)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
