import datetime

import pytest
from fastapi import HTTPException
from google.api_core import exceptions as gcp_exceptions

from mentorship.adapters import firestore_adapter as store


def test_missing_client_is_service_unavailable(monkeypatch):
    monkeypatch.setattr(store, "_get_firestore_client", lambda: None)
    with pytest.raises(HTTPException) as exc:
        store.get_db()
    assert exc.value.status_code == 503


def test_create_drops_none_and_reads_back_iso(db):
    created = datetime.datetime(2026, 2, 1, 9, 30)
    doc_id = store.create_document("things", {"a": 1, "b": None, "createdAt": created})
    assert db.docs("things")[doc_id] == {"a": 1, "createdAt": created}

    record = store.get_document("things", doc_id)
    assert record == {"id": doc_id, "a": 1, "createdAt": "2026-02-01T09:30:00+00:00"}
    assert store.get_document("things", "nope") is None
    assert store.get_document("things", "") is None


def test_update_and_delete_missing_raise_not_found(db):
    with pytest.raises(HTTPException) as exc:
        store.update_document("things", "nope", {"a": 2})
    assert exc.value.status_code == 404
    with pytest.raises(HTTPException) as exc:
        store.delete_document("things", "nope")
    assert exc.value.status_code == 404


def test_query_filters_order_limit(db):
    for n in range(5):
        db.add("things", {"group": "a" if n % 2 else "b", "n": n})
    found = store.query_documents("things", [("group", "==", "b")], order_by="n", descending=True, limit=2)
    assert [r["n"] for r in found] == [4, 2]
    assert store.find_one("things", [("n", ">=", 3), ("group", "==", "a")])["n"] == 3


def test_list_all_sorted_falls_back_without_index(db, monkeypatch):
    db.add("things", {"name": "old", "createdAt": "2026-01-01"})
    db.add("things", {"name": "new", "createdAt": "2026-02-01"})
    real_query = store.query_documents

    def _query(collection, filters=(), order_by=None, **kwargs):
        if order_by:
            raise gcp_exceptions.FailedPrecondition("index required")
        return real_query(collection, filters, **kwargs)

    monkeypatch.setattr(store, "query_documents", _query)
    assert [r["name"] for r in store.list_all_sorted("things", "createdAt")] == ["new", "old"]


def test_paginate_unknown_cursor(db):
    with pytest.raises(HTTPException) as exc:
        store.paginate("things", [], order_by="n", cursor="missing")
    assert exc.value.status_code == 404
