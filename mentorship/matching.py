"""Mentor/mentee matching ("bridges").

The first half of this module is pure list logic used to build the matching
bench; the second half writes match documents.
"""

from __future__ import annotations

import logging
from typing import Iterable
from typing import Optional

from mentorship import ai
from mentorship import mailer
from mentorship import participants
from mentorship.adapters import firestore_adapter as store
from mentorship.core import today_iso
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import Conflict
from mentorship.errors import NotFound
from mentorship.models import MatchStatus
from mentorship.models import NotificationType
from mentorship.models import Role
from mentorship.models import normalize_role
from mentorship.notifications import notify

logger = logging.getLogger(__name__)

COLLECTION = "matches"
_TIMESTAMPS = ("completedAt",)


def _has_role(user: dict, role: Role) -> bool:
    return normalize_role(user.get("role")) == role


def active_matches(matches: Iterable[dict]) -> list[dict]:
    return [m for m in matches if m.get("status") == MatchStatus.ACTIVE.value]


def mentors(users: Iterable[dict]) -> list[dict]:
    return [u for u in users if _has_role(u, Role.MENTOR)]


def unmatched_mentees(users: Iterable[dict], matches: Iterable[dict]) -> list[dict]:
    matched = {m.get("menteeId") for m in active_matches(matches)}
    return [u for u in users if _has_role(u, Role.MENTEE) and u["id"] not in matched]


def common_tags(mentee: dict, mentor: dict) -> list[str]:
    """Mentor skills overlapping the mentee's goals and skills.

    Overlap is a case-insensitive substring test in either direction, so
    "Python" matches a goal of "learn python".
    """
    mentee_tags = [t.lower() for t in (mentee.get("goals") or []) + (mentee.get("skills") or []) if t]
    found = []
    for skill in mentor.get("skills") or []:
        lowered = skill.lower()
        if any(lowered in tag or tag in lowered for tag in mentee_tags):
            found.append(skill)
    return found


def filter_mentors(candidates: Iterable[dict], search_term: str = "") -> list[dict]:
    term = (search_term or "").strip().lower()
    if not term:
        return list(candidates)
    return [
        m
        for m in candidates
        if term in (m.get("name") or "").lower()
        or term in (m.get("company") or "").lower()
        or any(term in (s or "").lower() for s in m.get("skills") or [])
    ]


def order_by_suggestions(candidates: Iterable[dict], suggested_ids: Iterable[str]) -> list[dict]:
    # suggested first, relative order otherwise unchanged
    suggested = set(suggested_ids)
    candidates = list(candidates)
    ranked = [m for m in candidates if m["id"] in suggested]
    return ranked + [m for m in candidates if m["id"] not in suggested]


def mentor_capacity(mentor: dict, matches: Iterable[dict]) -> dict:
    active = sum(1 for m in active_matches(matches) if m.get("mentorId") == mentor["id"])
    return {
        "active": active,
        "max": mentor.get("maxMentees"),
        "accepting": mentor.get("acceptingNewMentees") is not False,
    }


def has_capacity(mentor: dict, matches: Iterable[dict]) -> bool:
    capacity = mentor_capacity(mentor, matches)
    if not capacity["accepting"]:
        return False
    return capacity["max"] is None or capacity["active"] < capacity["max"]


def list_matches(organization_id: str) -> list[dict]:
    return store.query_documents(
        COLLECTION,
        [("organizationId", "==", organization_id)],
        order_by="startDate",
        descending=True,
        timestamp_fields=_TIMESTAMPS,
    )


def list_matches_page(organization_id: str, page_size: int, cursor: Optional[str] = None) -> dict:
    return store.paginate(
        COLLECTION,
        [("organizationId", "==", organization_id)],
        order_by="startDate",
        descending=True,
        page_size=page_size,
        cursor=cursor,
        timestamp_fields=_TIMESTAMPS,
    )


def matches_for_user(organization_id: str, user_id: str) -> list[dict]:
    return [m for m in list_matches(organization_id) if user_id in (m.get("mentorId"), m.get("menteeId"))]


def active_mentor_ids(organization_id: str, mentee_id: str) -> set[str]:
    return {
        m["mentorId"]
        for m in active_matches(list_matches(organization_id))
        if m.get("menteeId") == mentee_id
    }


def bench(
    organization_id: str, mentee_id: Optional[str] = None, search: str = "", use_ai: bool = False
) -> dict:
    users = participants.list_participants(organization_id)
    matches = list_matches(organization_id)
    names = {u["id"]: u.get("name") for u in users}

    view = {
        "unmatchedMentees": unmatched_mentees(users, matches),
        "activeMatches": [
            {**m, "mentorName": names.get(m.get("mentorId")), "menteeName": names.get(m.get("menteeId"))}
            for m in active_matches(matches)
        ],
        "selectedMentee": None,
        "menteeGoals": [],
        "aiAvailable": True,
    }

    candidates = filter_mentors(mentors(users), search)
    mentee = None
    suggestions: list[dict] = []
    if mentee_id:
        mentee = next((u for u in users if u["id"] == mentee_id and _has_role(u, Role.MENTEE)), None)
        if mentee is None:
            raise NotFound("Mentee not found")
        view["selectedMentee"] = mentee
        if mentee.get("goalsPublic") is not False:
            view["menteeGoals"] = mentee.get("goals") or []
        if use_ai:
            suggestions = ai.get_match_suggestions(mentee, candidates)
            view["aiAvailable"] = bool(suggestions)

    by_id = {s["mentorId"]: s for s in suggestions}
    if by_id:
        candidates = order_by_suggestions(candidates, by_id)
    view["mentors"] = [
        {
            **m,
            "commonTags": common_tags(mentee, m) if mentee else [],
            "suggested": m["id"] in by_id,
            "aiScore": by_id.get(m["id"], {}).get("score"),
            "aiReason": by_id.get(m["id"], {}).get("reason"),
            "capacity": mentor_capacity(m, matches),
        }
        for m in candidates
    ]
    return view


def create_bridge(organization_id: str, mentor_id: str, mentee_id: str, notes: Optional[str] = None) -> dict:
    if not mentor_id or not mentee_id:
        raise BadRequest("Both mentorId and menteeId are required")
    if mentor_id == mentee_id:
        raise BadRequest("A user cannot mentor themselves")
    mentor = participants.get_participant(organization_id, mentor_id)
    mentee = participants.get_participant(organization_id, mentee_id)
    if not _has_role(mentor, Role.MENTOR):
        raise BadRequest(f"{mentor.get('name')} is not a mentor")
    if not _has_role(mentee, Role.MENTEE):
        raise BadRequest(f"{mentee.get('name')} is not a mentee")

    matches = list_matches(organization_id)
    for match in active_matches(matches):
        if match.get("menteeId") != mentee_id:
            continue
        if match.get("mentorId") == mentor_id:
            raise Conflict("These users are already matched")
        raise Conflict(f"{mentee.get('name')} already has an active mentor")
    if not has_capacity(mentor, matches):
        raise Conflict(f"{mentor.get('name')} is not accepting new mentees")

    data = {
        "organizationId": organization_id,
        "mentorId": mentor_id,
        "menteeId": mentee_id,
        "status": MatchStatus.ACTIVE.value,
        "startDate": today_iso(),
        "notes": notes,
    }
    match_id = store.create_document(COLLECTION, data)
    logger.info("Match %s created: mentor %s, mentee %s", match_id, mentor_id, mentee_id)

    notify(
        organization_id,
        mentee_id,
        NotificationType.BRIDGE,
        "New Mentor Match",
        f"You have been matched with {mentor.get('name')}!",
    )
    notify(
        organization_id,
        mentor_id,
        NotificationType.BRIDGE,
        "New Mentee Match",
        f"You have been matched with {mentee.get('name')}!",
    )
    mailer.send_match_created(mentee, mentor, mentee)
    mailer.send_match_created(mentor, mentor, mentee)
    return store.get_document(COLLECTION, match_id, _TIMESTAMPS)


def _org_match(organization_id: str, match_id: str) -> dict:
    match = store.get_document(COLLECTION, match_id, _TIMESTAMPS)
    if match is None or match.get("organizationId") != organization_id:
        raise NotFound("Match not found")
    return match


def complete_bridge(organization_id: str, match_id: str) -> dict:
    match = _org_match(organization_id, match_id)
    if match.get("status") != MatchStatus.ACTIVE.value:
        raise Conflict(f"Only active matches can be completed (status is {match.get('status')})")
    completed_at = utc_now().isoformat()
    store.update_document(
        COLLECTION, match_id, {"status": MatchStatus.COMPLETED.value, "completedAt": completed_at}
    )
    logger.info("Match %s completed", match_id)
    return {**match, "status": MatchStatus.COMPLETED.value, "completedAt": completed_at}


def update_bridge_notes(organization_id: str, match_id: str, notes: str) -> dict:
    match = _org_match(organization_id, match_id)
    store.update_document(COLLECTION, match_id, {"notes": notes})
    return {**match, "notes": notes}
