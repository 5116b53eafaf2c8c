"""User records within an organization (the Participants view)."""

from __future__ import annotations

import logging
import urllib.parse
from typing import Optional

from mentorship.adapters import firestore_adapter as store
from mentorship.auth import Session
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import Forbidden
from mentorship.errors import NotFound
from mentorship.models import MOODS
from mentorship.models import Role
from mentorship.models import normalize_role

logger = logging.getLogger(__name__)

COLLECTION = "users"

SELF_EDITABLE = (
    "name",
    "avatar",
    "title",
    "company",
    "skills",
    "goals",
    "bio",
    "experience",
    "mood",
    "goalsPublic",
    "acceptingNewMentees",
    "maxMentees",
    "linkedinUrl",
)
ADMIN_EDITABLE = SELF_EDITABLE + ("email", "role")


def default_avatar(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={urllib.parse.quote(name or '')}"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(
    organization_id: str,
    name: str,
    email: str,
    role: Role,
    picture: Optional[str] = None,
    google_id: Optional[str] = None,
    title: str = "",
    company: str = "",
    password_hash: Optional[str] = None,
) -> dict:
    data = {
        "organizationId": organization_id,
        "name": name,
        "email": normalize_email(email),
        "role": Role(role).value,
        "avatar": picture or default_avatar(name),
        "title": title,
        "company": company,
        "skills": [],
        "bio": "",
        "googleId": google_id,
        "passwordHash": password_hash,
        "createdAt": utc_now(),
    }
    user_id = store.create_document(COLLECTION, data)
    logger.info("Created %s user %s in organization %s", data["role"], user_id, organization_id)
    return store.get_document(COLLECTION, user_id)


def get_user(user_id: str) -> Optional[dict]:
    return store.get_document(COLLECTION, user_id)


def get_participant(organization_id: str, user_id: str) -> dict:
    user = get_user(user_id)
    if user is None or user.get("organizationId") != organization_id:
        raise NotFound("User not found")
    return user


def find_by_email(email: str, organization_id: Optional[str] = None) -> Optional[dict]:
    filters = [("email", "==", normalize_email(email))]
    if organization_id:
        filters.append(("organizationId", "==", organization_id))
    return store.find_one(COLLECTION, filters)


def find_by_google_id(google_id: str, organization_id: str) -> Optional[dict]:
    return store.find_one(
        COLLECTION, [("googleId", "==", google_id), ("organizationId", "==", organization_id)]
    )


def list_participants(
    organization_id: str, role: Optional[Role] = None, search: Optional[str] = None
) -> list[dict]:
    users = store.query_documents(
        COLLECTION,
        [("organizationId", "==", organization_id)],
        order_by="createdAt",
        descending=True,
    )
    if role is not None:
        users = [u for u in users if normalize_role(u.get("role")) == role]
    if search:
        term = search.strip().lower()
        users = [
            u
            for u in users
            if any(term in str(u.get(f) or "").lower() for f in ("name", "email", "title", "company"))
        ]
    return users


def list_participants_page(organization_id: str, page_size: int, cursor: Optional[str] = None) -> dict:
    return store.paginate(
        COLLECTION,
        [("organizationId", "==", organization_id)],
        order_by="createdAt",
        descending=True,
        page_size=page_size,
        cursor=cursor,
    )


def list_all_users() -> list[dict]:
    return store.list_all_sorted(COLLECTION, "createdAt", descending=True)


def _validate_profile(updates: dict) -> dict:
    if "mood" in updates and updates["mood"] is not None and updates["mood"] not in MOODS:
        raise BadRequest(f"Mood must be one of: {', '.join(MOODS)}")
    if "maxMentees" in updates and updates["maxMentees"] is not None and updates["maxMentees"] < 0:
        raise BadRequest("maxMentees cannot be negative")
    if "email" in updates:
        updates["email"] = normalize_email(updates["email"])
        if not updates["email"]:
            raise BadRequest("Email is required")
    if "name" in updates and not str(updates["name"] or "").strip():
        raise BadRequest("Name is required")
    return updates


def update_profile(session: Session, user_id: str, updates: dict) -> dict:
    organization_id = session.organization_id
    user = get_user(user_id)
    if user is None or (user.get("organizationId") != organization_id and not session.is_platform_admin):
        raise NotFound("User not found")

    own_profile = user_id == session.user_id
    if not own_profile and not session.is_admin:
        raise Forbidden("Cannot edit another user's profile")

    allowed = ADMIN_EDITABLE if session.is_admin else SELF_EDITABLE
    rejected = set(updates) - set(allowed)
    if rejected:
        raise Forbidden(f"Fields cannot be changed: {', '.join(sorted(rejected))}")

    if "role" in updates:
        return change_role(session, user_id, updates.pop("role"), extra=_validate_profile(updates))

    updates = _validate_profile(updates)
    if updates:
        store.update_document(COLLECTION, user_id, updates)
    return get_user(user_id)


def change_role(session: Session, user_id: str, role, extra: Optional[dict] = None) -> dict:
    new_role = normalize_role(role)
    if new_role is None:
        raise BadRequest(f"Unknown role: {role}")
    if not session.is_admin:
        raise Forbidden("Only admins can change roles")
    if new_role == Role.PLATFORM_ADMIN and not session.is_platform_admin:
        raise Forbidden("Only platform operators can grant the platform operator role")

    user = get_user(user_id)
    foreign = user is not None and user.get("organizationId") != session.organization_id
    if user is None or (foreign and not session.is_platform_admin):
        raise NotFound("User not found")
    store.update_document(COLLECTION, user_id, {**(extra or {}), "role": new_role.value})
    logger.info("User %s role changed to %s by %s", user_id, new_role.value, session.user_id)
    return get_user(user_id)


def delete_participant(session: Session, user_id: str) -> None:
    if user_id == session.user_id:
        raise BadRequest("You cannot delete your own account here")
    user = get_user(user_id)
    foreign = user is not None and user.get("organizationId") != session.organization_id
    if user is None or (foreign and not session.is_platform_admin):
        raise NotFound("User not found")
    store.delete_document(COLLECTION, user_id)
    logger.info("User %s deleted by %s", user_id, session.user_id)
