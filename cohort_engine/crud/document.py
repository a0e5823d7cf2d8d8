import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from cohort_engine.models.document import Document

COHORTS = "cohorts"
LESSONS = "lessons"
LESSON_RELEASES = "lesson_releases"
LESSON_PROGRESS = "lesson_progress"
ENROLLMENTS = "enrollments"
USER_ACTIVITY = "user_activity"
QUESTIONS = "questions"

def _to_dict(db_document: Document) -> Dict[str, Any]:
    data = dict(db_document.data or {})
    data["id"] = db_document.id
    return data

def _strip_id(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key != "id"}

def _get_row(db: Session, collection: str, doc_id: str) -> Optional[Document]:
    return db.query(Document).filter(
        Document.collection == collection,
        Document.id == doc_id
    ).first()

def get_document(db: Session, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    db_document = _get_row(db, collection, doc_id)
    if not db_document:
        return None
    return _to_dict(db_document)

def get_document_with_version(db: Session, collection: str, doc_id: str) -> Optional[Tuple[Dict[str, Any], int]]:
    """Документ вместе с номером версии для условной записи"""
    db_document = _get_row(db, collection, doc_id)
    if not db_document:
        return None
    return _to_dict(db_document), db_document.version

def _upsert(db: Session, collection: str, doc_id: str, data: Dict[str, Any]) -> Document:
    db_document = _get_row(db, collection, doc_id)
    if db_document:
        # Новый dict, чтобы SQLAlchemy увидел изменение JSON-поля
        db_document.data = _strip_id(data)
        db_document.version = db_document.version + 1
    else:
        db_document = Document(collection=collection, id=doc_id, data=_strip_id(data), version=1)
        db.add(db_document)
    return db_document

def set_document(db: Session, collection: str, doc_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    db_document = _upsert(db, collection, doc_id, data)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_document)
    return _to_dict(db_document)

def create_document(db: Session, collection: str, data: Dict[str, Any]) -> str:
    doc_id = uuid.uuid4().hex
    set_document(db, collection, doc_id, data)
    return doc_id

def query_documents(
    db: Session,
    collection: str,
    filters: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Выборка по равенству полей; фильтры применяются к декодированным документам"""
    filters = filters or {}
    rows = db.query(Document).filter(
        Document.collection == collection
    ).order_by(Document.created_at, Document.id).all()

    results = []
    for row in rows:
        data = row.data or {}
        if all(data.get(field) == value for field, value in filters.items()):
            results.append(_to_dict(row))
            if limit is not None and len(results) >= limit:
                break
    return results

def write_batch(db: Session, writes: Iterable[Tuple[str, str, Dict[str, Any]]]) -> int:
    """Пакетная запись: либо все документы, либо ни одного"""
    count = 0
    try:
        for collection, doc_id, data in writes:
            _upsert(db, collection, doc_id, data)
            count += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    return count

def compare_and_set(
    db: Session,
    collection: str,
    doc_id: str,
    data: Dict[str, Any],
    expected_version: int
) -> bool:
    """Записывает документ, только если его версия не изменилась с момента чтения"""
    try:
        updated = db.query(Document).filter(
            Document.collection == collection,
            Document.id == doc_id,
            Document.version == expected_version
        ).update(
            {
                Document.data: _strip_id(data),
                Document.version: expected_version + 1,
                Document.updated_at: datetime.utcnow(),
            },
            synchronize_session=False
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    # Объекты сессии могли устареть после UPDATE в обход ORM
    db.expire_all()
    return updated == 1
