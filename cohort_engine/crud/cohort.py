from sqlalchemy.orm import Session
from typing import List, Optional, Tuple

from cohort_engine.crud import document as crud_document
from cohort_engine.schemas.cohort import Cohort

def get_cohort(db: Session, cohort_id: str) -> Optional[Cohort]:
    data = crud_document.get_document(db, crud_document.COHORTS, cohort_id)
    if not data:
        return None
    return Cohort.model_validate(data)

def get_cohort_with_version(db: Session, cohort_id: str) -> Optional[Tuple[Cohort, int]]:
    found = crud_document.get_document_with_version(db, crud_document.COHORTS, cohort_id)
    if not found:
        return None
    data, version = found
    return Cohort.model_validate(data), version

def get_cohorts(db: Session, course_id: Optional[str] = None) -> List[Cohort]:
    filters = {"course_id": course_id} if course_id else None
    documents = crud_document.query_documents(db, crud_document.COHORTS, filters)
    return [Cohort.model_validate(data) for data in documents]

def save_cohort(db: Session, cohort: Cohort) -> Cohort:
    data = crud_document.set_document(
        db, crud_document.COHORTS, cohort.id, cohort.model_dump(mode="json")
    )
    return Cohort.model_validate(data)

def save_cohort_if_unchanged(db: Session, cohort: Cohort, expected_version: int) -> bool:
    return crud_document.compare_and_set(
        db,
        crud_document.COHORTS,
        cohort.id,
        cohort.model_dump(mode="json"),
        expected_version
    )
