"""Thin document helpers over the Firestore client.

All reads and writes in the service go through these functions. Records are
plain dicts carrying the document ``id`` with stored timestamps converted to
ISO strings.
"""

from __future__ import annotations

import logging
from typing import Any
from typing import Iterable
from typing import Optional
from typing import Sequence

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from mentorship.core import _get_firestore_client
from mentorship.core import convert_timestamp
from mentorship.errors import NotFound
from mentorship.errors import ServiceUnavailable

logger = logging.getLogger(__name__)

Filter = tuple[str, str, Any]

DEFAULT_PAGE_SIZE = 20


def get_db() -> Any:
    db = _get_firestore_client()
    if db is None:
        raise ServiceUnavailable("Firestore client unavailable")
    return db


def to_record(snapshot: Any, timestamp_fields: Iterable[str] = ("createdAt",)) -> dict:
    data = snapshot.to_dict() or {}
    record = {"id": snapshot.id, **data}
    for field in timestamp_fields:
        if field in data:
            record[field] = convert_timestamp(data[field])
    return record


def _clean(data: dict) -> dict:
    # Firestore rejects undefined values; None means "not set" here
    return {k: v for k, v in data.items() if v is not None}


def create_document(collection: str, data: dict, doc_id: Optional[str] = None) -> str:
    db = get_db()
    ref = db.collection(collection).document(doc_id) if doc_id else db.collection(collection).document()
    ref.set(_clean(data))
    return ref.id


def get_snapshot(collection: str, doc_id: str) -> Optional[Any]:
    if not doc_id:
        return None
    snap = get_db().collection(collection).document(doc_id).get()
    return snap if snap.exists else None


def get_document(
    collection: str, doc_id: str, timestamp_fields: Iterable[str] = ("createdAt",)
) -> Optional[dict]:
    snap = get_snapshot(collection, doc_id)
    if snap is None:
        return None
    return to_record(snap, timestamp_fields)


def update_document(collection: str, doc_id: str, updates: dict) -> None:
    ref = get_db().collection(collection).document(doc_id)
    if not ref.get().exists:
        raise NotFound(f"No {collection} document: {doc_id}")
    ref.update(updates)


def delete_document(collection: str, doc_id: str) -> None:
    ref = get_db().collection(collection).document(doc_id)
    if not ref.get().exists:
        raise NotFound(f"No {collection} document: {doc_id}")
    ref.delete()


def _build_query(
    collection: str,
    filters: Sequence[Filter] = (),
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
) -> Any:
    query = get_db().collection(collection)
    for field, op, value in filters:
        query = query.where(filter=FieldFilter(field, op, value))
    if order_by:
        direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
        query = query.order_by(order_by, direction=direction)
    if limit:
        query = query.limit(limit)
    return query


def query_documents(
    collection: str,
    filters: Sequence[Filter] = (),
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
    timestamp_fields: Iterable[str] = ("createdAt",),
) -> list[dict]:
    query = _build_query(collection, filters, order_by, descending, limit)
    return [to_record(snap, timestamp_fields) for snap in query.stream()]


def find_one(
    collection: str, filters: Sequence[Filter], timestamp_fields: Iterable[str] = ("createdAt",)
) -> Optional[dict]:
    found = query_documents(collection, filters, limit=1, timestamp_fields=timestamp_fields)
    return found[0] if found else None


def list_all_sorted(
    collection: str,
    order_by: str,
    descending: bool = True,
    timestamp_fields: Iterable[str] = ("createdAt",),
) -> list[dict]:
    """List a whole collection ordered by `order_by`.

    Platform-wide listings can hit a missing index; in that case the query
    is retried unordered and sorted in memory.
    """
    try:
        return query_documents(
            collection, order_by=order_by, descending=descending, timestamp_fields=timestamp_fields
        )
    except gcp_exceptions.FailedPrecondition:
        logger.warning("Index missing for %s %s, fetching without order_by", collection, order_by)
        records = query_documents(collection, timestamp_fields=timestamp_fields)
        return sorted(records, key=lambda r: str(r.get(order_by) or ""), reverse=descending)


def paginate(
    collection: str,
    filters: Sequence[Filter],
    order_by: str,
    descending: bool = True,
    page_size: int = DEFAULT_PAGE_SIZE,
    cursor: Optional[str] = None,
    timestamp_fields: Iterable[str] = ("createdAt",),
) -> dict:
    """Return one page plus the cursor (last document id) for the next one.

    One extra document is fetched to learn whether another page exists.
    """
    page_size = max(1, page_size)
    query = _build_query(collection, filters, order_by, descending, page_size + 1)
    if cursor:
        last = get_snapshot(collection, cursor)
        if last is None:
            raise NotFound(f"Unknown page cursor: {cursor}")
        query = query.start_after(last)

    snaps = list(query.stream())
    has_more = len(snaps) > page_size
    page = snaps[:page_size]
    return {
        "data": [to_record(s, timestamp_fields) for s in page],
        "nextCursor": page[-1].id if has_more else None,
        "hasMore": has_more,
    }
