from __future__ import annotations

import logging
from typing import Iterable
from typing import Optional

from mentorship import participants
from mentorship.adapters import firestore_adapter as store
from mentorship.auth import Session
from mentorship.core import today_iso
from mentorship.errors import BadRequest
from mentorship.errors import NotFound

logger = logging.getLogger(__name__)

COLLECTION = "ratings"
MIN_SCORE = 1
MAX_SCORE = 5


def create_rating(session: Session, to_user_id: str, score, comment: str = "") -> dict:
    if isinstance(score, bool) or not isinstance(score, int) or not MIN_SCORE <= score <= MAX_SCORE:
        raise BadRequest(f"Score must be a whole number from {MIN_SCORE} to {MAX_SCORE}")
    if to_user_id == session.user_id:
        raise BadRequest("You cannot rate yourself")
    participants.get_participant(session.organization_id, to_user_id)

    data = {
        "organizationId": session.organization_id,
        "fromUserId": session.user_id,
        "toUserId": to_user_id,
        "score": score,
        "comment": comment or "",
        "isApproved": False,
        "date": today_iso(),
    }
    rating_id = store.create_document(COLLECTION, data)
    logger.info("Rating %s submitted for %s", rating_id, to_user_id)
    return {"id": rating_id, **data}


def approve_rating(organization_id: str, rating_id: str) -> dict:
    rating = store.get_document(COLLECTION, rating_id)
    if rating is None or rating.get("organizationId") != organization_id:
        raise NotFound("Rating not found")
    store.update_document(COLLECTION, rating_id, {"isApproved": True})
    return {**rating, "isApproved": True}


def list_ratings(organization_id: str, pending_only: bool = False) -> list[dict]:
    filters = [("organizationId", "==", organization_id)]
    if pending_only:
        filters.append(("isApproved", "==", False))
    return store.query_documents(COLLECTION, filters, order_by="date", descending=True)


def average_score(ratings: Iterable[dict]) -> Optional[float]:
    scores = [r["score"] for r in ratings if r.get("isApproved")]
    if not scores:
        return None
    return sum(scores) / len(scores)


def mentor_average(ratings: Iterable[dict], user_id: str) -> Optional[float]:
    return average_score(r for r in ratings if r.get("toUserId") == user_id)
