from __future__ import annotations

import datetime
import logging
import math
from typing import Iterable
from typing import Optional

from mentorship import mailer
from mentorship import participants
from mentorship.adapters import firestore_adapter as store
from mentorship.core import get_settings
from mentorship.core import parse_timestamp
from mentorship.core import random_code
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import NotFound
from mentorship.models import Role

logger = logging.getLogger(__name__)

COLLECTION = "organizations"
CODE_LENGTH = 6
DEFAULT_ACCENT = "#10b981"
MUTABLE_FIELDS = ("name", "domain", "logo", "accentColor", "programSettings")
_MAX_CODE_ATTEMPTS = 10
TRIAL_REMINDER_FLAGS = {3: "trialReminder3dSent", 1: "trialReminder1dSent"}


def generate_organization_code() -> str:
    return random_code(CODE_LENGTH)


def default_program_settings(name: str) -> dict:
    return {
        "programName": name,
        "logo": None,
        "accentColor": DEFAULT_ACCENT,
        "introText": "Welcome to our mentorship program!",
        "fields": [],
    }


def _unused_code() -> str:
    for _ in range(_MAX_CODE_ATTEMPTS):
        code = generate_organization_code()
        if store.find_one(COLLECTION, [("organizationCode", "==", code)]) is None:
            return code
    raise RuntimeError("Could not allocate a unique organization code")


def create_organization(
    name: str,
    domain: Optional[str] = None,
    logo: Optional[str] = None,
    accent_color: str = DEFAULT_ACCENT,
    program_settings: Optional[dict] = None,
) -> dict:
    name = (name or "").strip()
    if not name:
        raise BadRequest("Organization name is required")
    data = {
        "name": name,
        "domain": domain,
        "logo": logo,
        "accentColor": accent_color,
        "programSettings": program_settings or default_program_settings(name),
        "subscriptionTier": "free",
        "organizationCode": _unused_code(),
        "createdAt": utc_now(),
    }
    org_id = store.create_document(COLLECTION, data)
    logger.info("Created organization %s (%s)", org_id, data["organizationCode"])
    return get_organization(org_id)


def set_trial_period(organization_id: str) -> str:
    trial_end = utc_now() + datetime.timedelta(days=get_settings().trial_period_days)
    store.update_document(
        COLLECTION,
        organization_id,
        {"trialEnd": trial_end.isoformat(), "subscriptionStatus": "trialing"},
    )
    return trial_end.isoformat()


def get_organization(organization_id: str) -> Optional[dict]:
    return store.get_document(COLLECTION, organization_id)


def require_organization(organization_id: str) -> dict:
    org = get_organization(organization_id)
    if org is None:
        raise NotFound("Organization not found")
    return org


def get_organization_by_code(code: str) -> Optional[dict]:
    if not code:
        return None
    return store.find_one(COLLECTION, [("organizationCode", "==", code.strip().upper())])


def public_profile(org: dict) -> dict:
    return {
        "id": org["id"],
        "name": org.get("name"),
        "organizationCode": org.get("organizationCode"),
        "programSettings": org.get("programSettings"),
    }


def update_organization(organization_id: str, updates: dict) -> dict:
    unknown = set(updates) - set(MUTABLE_FIELDS)
    if unknown:
        raise BadRequest(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
    if "name" in updates and not str(updates["name"] or "").strip():
        raise BadRequest("Organization name is required")
    require_organization(organization_id)
    if updates:
        store.update_document(COLLECTION, organization_id, updates)
    return require_organization(organization_id)


def update_program_settings(organization_id: str, settings: dict) -> dict:
    if not settings.get("programName"):
        raise BadRequest("Program name is required")
    return update_organization(organization_id, {"programSettings": settings})


def list_organizations() -> list[dict]:
    return store.list_all_sorted(COLLECTION, "createdAt", descending=True)


def delete_organization(organization_id: str) -> None:
    store.delete_document(COLLECTION, organization_id)
    logger.info("Deleted organization %s", organization_id)


def trial_days_remaining(organization: dict, now: datetime.datetime) -> Optional[int]:
    trial_end = parse_timestamp(organization.get("trialEnd"))
    if trial_end is None:
        return None
    return math.ceil((trial_end - now).total_seconds() / 86400)


def due_trial_reminders(organizations: Iterable[dict], now: datetime.datetime) -> list[tuple[dict, int]]:
    """Trialing organizations whose trial ends in exactly 3 or 1 days (rounded up)."""
    due = []
    for organization in organizations:
        if organization.get("subscriptionStatus") != "trialing":
            continue
        days = trial_days_remaining(organization, now)
        if days in TRIAL_REMINDER_FLAGS and not organization.get(TRIAL_REMINDER_FLAGS[days]):
            due.append((organization, days))
    return due


def _founding_admin(organization_id: str) -> Optional[dict]:
    admins = participants.list_participants(organization_id, role=Role.ADMIN)
    # listed newest first
    return admins[-1] if admins else None


def send_trial_reminders(now: Optional[datetime.datetime] = None) -> int:
    now = now or utc_now()
    trialing = store.query_documents(
        COLLECTION, [("subscriptionTier", "==", "free"), ("subscriptionStatus", "==", "trialing")]
    )
    sent = 0
    for organization, days in due_trial_reminders(trialing, now):
        admin = _founding_admin(organization["id"])
        if admin is None:
            logger.warning("No admin to remind about trial end for organization %s", organization["id"])
            continue
        mailer.send_trial_ending(admin, organization, days)
        store.update_document(COLLECTION, organization["id"], {TRIAL_REMINDER_FLAGS[days]: True})
        sent += 1
    logger.info("Checked %d trialing organizations, sent %d trial reminders", len(trialing), sent)
    return sent
