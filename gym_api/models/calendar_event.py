from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey
from datetime import datetime

from gym_api.models.gym import Base


EVENT_CATEGORIES = (
    "meetings",
    "sales",
    "feedback",
    "reports",
    "evaluation",
    "maintenance",
    "training",
    "metrics",
    "special",
)


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    event_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    category = Column(String(30), nullable=False, default="meetings")

    user_id = Column(Integer, nullable=False, index=True)
    user_type = Column(String(20), nullable=False)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
