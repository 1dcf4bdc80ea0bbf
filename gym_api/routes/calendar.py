from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Query as OrmQuery, Session

from gym_api.core.crud import paginate
from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_staff
from gym_api.core.errors import NotFoundError, ValidationError
from gym_api.core.validators import minutes, one_of, validate_time
from gym_api.models.calendar_event import EVENT_CATEGORIES, CalendarEvent


router = APIRouter()


def _check_range(start_time: Optional[str], end_time: Optional[str]) -> None:
    if start_time and end_time and minutes(end_time) <= minutes(start_time):
        raise ValidationError("La hora de fin debe ser posterior a la hora de inicio")


class EventIn(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    event_date: date
    start_time: str
    end_time: str
    category: str = "meetings"

    check_times = field_validator("start_time", "end_time")(validate_time)
    check_category = field_validator("category")(one_of(EVENT_CATEGORIES))

    @model_validator(mode="after")
    def end_after_start(self):
        if minutes(self.end_time) <= minutes(self.start_time):
            raise ValueError("La hora de fin debe ser posterior a la hora de inicio")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    event_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    category: Optional[str] = None

    check_times = field_validator("start_time", "end_time")(validate_time)
    check_category = field_validator("category")(one_of(EVENT_CATEGORIES))


class EventOut(BaseModel):
    id: int
    title: str
    event_date: date
    start_time: str
    end_time: str
    category: str
    user_id: int
    user_type: str
    gym_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventPage(BaseModel):
    items: List[EventOut]
    total: int
    page: int
    limit: int
    pages: int


def owned_events(db: Session, identity: Identity) -> OrmQuery:
    return db.query(CalendarEvent).filter(
        CalendarEvent.user_id == identity.id,
        CalendarEvent.user_type == identity.role.value,
    )


def _chronological(query: OrmQuery) -> OrmQuery:
    return query.order_by(CalendarEvent.event_date.asc(), CalendarEvent.start_time.asc(), CalendarEvent.id.asc())


def _owned_or_404(db: Session, identity: Identity, event_id: int) -> CalendarEvent:
    event = owned_events(db, identity).filter(CalendarEvent.id == event_id).first()
    if not event:
        raise NotFoundError("Evento no encontrado")
    return event


@router.post("/create", response_model=EventOut, status_code=201)
def create_event(data: EventIn, db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    event = CalendarEvent(
        **data.model_dump(),
        user_id=identity.id,
        user_type=identity.role.value,
        gym_id=identity.gym_id,
    )
    event.title = event.title.strip()
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@router.get("/all", response_model=EventPage)
def list_events(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_staff),
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    query = owned_events(db, identity)
    if category in EVENT_CATEGORIES:
        query = query.filter(CalendarEvent.category == category)
    if start_date:
        query = query.filter(CalendarEvent.event_date >= start_date)
    if end_date:
        query = query.filter(CalendarEvent.event_date <= end_date)
    return paginate(_chronological(query), page, limit)


@router.get("/today")
def today_events(db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    today = date.today()
    events = _chronological(owned_events(db, identity).filter(CalendarEvent.event_date == today)).all()
    by_category: Dict[str, List[EventOut]] = {}
    items = [EventOut.model_validate(e) for e in events]
    for item in items:
        by_category.setdefault(item.category, []).append(item)
    return {"date": today, "items": items, "by_category": by_category, "total": len(items)}


@router.get("/date-range")
def events_in_range(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_staff),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
):
    if not start_date or not end_date:
        raise ValidationError("start_date y end_date son requeridos")
    if start_date > end_date:
        raise ValidationError("La fecha de inicio debe ser anterior a la fecha de fin")
    events = _chronological(
        owned_events(db, identity).filter(
            CalendarEvent.event_date >= start_date,
            CalendarEvent.event_date <= end_date,
        )
    ).all()
    return {
        "start_date": start_date,
        "end_date": end_date,
        "items": [EventOut.model_validate(e) for e in events],
        "total": len(events),
    }


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: int, db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    return _owned_or_404(db, identity, event_id)


@router.put("/{event_id}", response_model=EventOut)
def update_event(event_id: int, data: EventUpdate, db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    event = _owned_or_404(db, identity, event_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        raise ValidationError("No hay cambios para aplicar")
    _check_range(changes.get("start_time", event.start_time), changes.get("end_time", event.end_time))
    for field, value in changes.items():
        setattr(event, field, value)
    db.commit()
    db.refresh(event)
    return event


@router.delete("/{event_id}")
def delete_event(event_id: int, db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    event = _owned_or_404(db, identity, event_id)
    db.delete(event)
    db.commit()
    return {"message": "Evento eliminado correctamente"}
