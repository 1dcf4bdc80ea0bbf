from datetime import datetime, timedelta
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Query as OrmQuery, Session

from gym_api.core.crud import paginate
from gym_api.core.database import get_db
from gym_api.core.deps import Identity, require_staff
from gym_api.core.errors import NotFoundError, ValidationError
from gym_api.core.validators import one_of
from gym_api.models.note import NOTE_CATEGORIES, Note


router = APIRouter()

SORT_FIELDS = {
    "title": Note.title,
    "category": Note.category,
    "created_at": Note.created_at,
    "updated_at": Note.updated_at,
}


class NoteIn(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1, max_length=2000)
    category: str = "nota"

    check_category = field_validator("category")(one_of(NOTE_CATEGORIES))


class NoteUpdate(BaseModel):
    id: int
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    content: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[str] = None

    check_category = field_validator("category")(one_of(NOTE_CATEGORIES))


class NoteOut(BaseModel):
    id: int
    title: str
    content: str
    category: str
    user_id: int
    user_type: str
    gym_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotePage(BaseModel):
    items: List[NoteOut]
    total: int
    page: int
    limit: int
    pages: int
    by_category: Dict[str, int] = {}


class IdIn(BaseModel):
    id: int


def owned_notes(db: Session, identity: Identity) -> OrmQuery:
    return db.query(Note).filter(Note.user_id == identity.id, Note.user_type == identity.role.value)


def _owned_or_404(db: Session, identity: Identity, note_id: int) -> Note:
    note = owned_notes(db, identity).filter(Note.id == note_id).first()
    if not note:
        raise NotFoundError("Nota no encontrada")
    return note


def _text_filter(term: str):
    like = f"%{term.strip().lower()}%"
    return or_(func.lower(Note.title).like(like), func.lower(Note.content).like(like))


def count_by_category(query: OrmQuery) -> Dict[str, int]:
    rows = query.with_entities(Note.category, func.count(Note.id)).group_by(Note.category).all()
    return {category: count for category, count in rows}


@router.post("/create", response_model=NoteOut, status_code=201)
def create_note(data: NoteIn, db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    note = Note(
        title=data.title.strip(),
        content=data.content.strip(),
        category=data.category,
        user_id=identity.id,
        user_type=identity.role.value,
        gym_id=identity.gym_id,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


@router.post("/update", response_model=NoteOut)
def update_note(data: NoteUpdate, db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    note = _owned_or_404(db, identity, data.id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True, exclude={"id"}).items() if v is not None}
    if not changes:
        raise ValidationError("No hay cambios para aplicar")
    for field, value in changes.items():
        setattr(note, field, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(note)
    return note


@router.post("/delete")
def delete_note(data: IdIn, db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    note = _owned_or_404(db, identity, data.id)
    db.delete(note)
    db.commit()
    return {"message": "Nota eliminada correctamente"}


@router.get("/all", response_model=NotePage)
def list_notes(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_staff),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    query = owned_notes(db, identity)
    if category in NOTE_CATEGORIES:
        query = query.filter(Note.category == category)
    if search and search.strip():
        query = query.filter(_text_filter(search))

    column = SORT_FIELDS.get(sort_by, Note.created_at)
    ordered = query.order_by(column.asc() if sort_order == "asc" else column.desc(), Note.id.desc())
    result = paginate(ordered, page, limit)
    result["by_category"] = count_by_category(query)
    return result


@router.get("/stats")
def note_stats(db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    query = owned_notes(db, identity)
    week_ago = datetime.utcnow() - timedelta(days=7)
    latest = query.order_by(Note.created_at.desc(), Note.id.desc()).first()
    return {
        "total_notes": query.count(),
        "recent_notes": query.filter(Note.created_at >= week_ago).count(),
        "by_category": count_by_category(query),
        "latest_note": {
            "id": latest.id,
            "title": latest.title,
            "category": latest.category,
            "created_at": latest.created_at,
        } if latest else None,
    }


@router.get("/search")
def search_notes(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_staff),
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=200),
):
    if not q or not q.strip():
        raise ValidationError("Término de búsqueda requerido")
    query = owned_notes(db, identity).filter(_text_filter(q))
    if category:
        query = query.filter(Note.category == category)
    notes = query.order_by(Note.created_at.desc(), Note.id.desc()).limit(limit).all()
    return {
        "search_term": q,
        "items": [NoteOut.model_validate(n) for n in notes],
        "total": len(notes),
    }


@router.get("/{note_id}", response_model=NoteOut)
def get_note(note_id: int, db: Session = Depends(get_db), identity: Identity = Depends(require_staff)):
    return _owned_or_404(db, identity, note_id)
