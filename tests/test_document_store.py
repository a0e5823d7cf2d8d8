import pytest
from sqlalchemy.exc import StatementError

from cohort_engine.crud import document as crud_document

COLLECTION = crud_document.ENROLLMENTS

def test_missing_document(db):
    assert crud_document.get_document(db, COLLECTION, "missing") is None
    assert crud_document.get_document_with_version(db, COLLECTION, "missing") is None

def test_every_write_bumps_version(db):
    crud_document.set_document(db, COLLECTION, "e1", {"user_id": "u1"})
    stored = crud_document.set_document(db, COLLECTION, "e1", {"user_id": "u2"})

    data, version = crud_document.get_document_with_version(db, COLLECTION, "e1")

    assert stored == {"id": "e1", "user_id": "u2"}
    assert data["user_id"] == "u2"
    assert version == 2

def test_compare_and_set_rejects_stale_version(db):
    crud_document.set_document(db, COLLECTION, "e1", {"uses": 0})
    _, version = crud_document.get_document_with_version(db, COLLECTION, "e1")
    crud_document.set_document(db, COLLECTION, "e1", {"uses": 1})

    assert crud_document.compare_and_set(db, COLLECTION, "e1", {"uses": 5}, version) is False
    assert crud_document.get_document(db, COLLECTION, "e1")["uses"] == 1

def test_compare_and_set_with_fresh_version(db):
    crud_document.set_document(db, COLLECTION, "e1", {"uses": 0})
    data, version = crud_document.get_document_with_version(db, COLLECTION, "e1")

    assert crud_document.compare_and_set(db, COLLECTION, "e1", {**data, "uses": 1}, version) is True

    data, new_version = crud_document.get_document_with_version(db, COLLECTION, "e1")
    assert data == {"id": "e1", "uses": 1}
    assert new_version == version + 1

def test_compare_and_set_on_missing_document(db):
    assert crud_document.compare_and_set(db, COLLECTION, "missing", {"uses": 1}, 1) is False

def test_write_batch_is_all_or_nothing(db):
    writes = [
        (COLLECTION, "e1", {"user_id": "u1"}),
        (COLLECTION, "e2", {"user_id": object()}),
    ]

    with pytest.raises((StatementError, TypeError)):
        crud_document.write_batch(db, writes)

    assert crud_document.query_documents(db, COLLECTION) == []

def test_write_batch_commits_all(db):
    count = crud_document.write_batch(db, [
        (COLLECTION, "e1", {"user_id": "u1"}),
        (crud_document.QUESTIONS, "q1", {"user_id": "u1"}),
    ])

    assert count == 2
    assert crud_document.get_document(db, crud_document.QUESTIONS, "q1") == {"id": "q1", "user_id": "u1"}

def test_query_filters_on_field_equality(db):
    crud_document.create_document(db, COLLECTION, {"user_id": "u1", "status": "active"})
    crud_document.create_document(db, COLLECTION, {"user_id": "u1", "status": "paused"})
    crud_document.create_document(db, COLLECTION, {"user_id": "u2", "status": "active"})
    crud_document.create_document(db, crud_document.QUESTIONS, {"user_id": "u1", "status": "active"})

    active = crud_document.query_documents(db, COLLECTION, {"user_id": "u1", "status": "active"})
    first_u1 = crud_document.query_documents(db, COLLECTION, {"user_id": "u1"}, limit=1)

    assert len(active) == 1
    assert active[0]["status"] == "active"
    assert len(first_u1) == 1
    assert len(crud_document.query_documents(db, COLLECTION)) == 3
