"""Enumerations and record helpers shared by the service modules."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "ORGANIZATION_ADMIN"
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    MENTOR = "MENTOR"
    MENTEE = "MENTEE"


class MatchStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class GoalStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class InvitationStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    EXPIRED = "Expired"
    REVOKED = "Revoked"


class NotificationType(str, Enum):
    MESSAGE = "message"
    MEETING = "meeting"
    GOAL = "goal"
    SYSTEM = "system"
    BRIDGE = "bridge"


MOODS = ("Happy", "Neutral", "Stressed", "Excited", "Tired", "Motivated", "Anxious", "Grateful")
RESOURCE_TYPES = ("Article", "Book", "Video", "Course")

# legacy role strings still present on older user documents
_LEGACY_ROLES = {
    "ADMIN": Role.ADMIN,
    "PLATFORM_OPERATOR": Role.PLATFORM_ADMIN,
}


def normalize_role(value) -> Optional[Role]:
    """Map a stored role value (current or legacy) onto `Role`, or None."""
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    text = str(value).strip().upper()
    if text in _LEGACY_ROLES:
        return _LEGACY_ROLES[text]
    try:
        return Role(text)
    except ValueError:
        return None


def is_platform_admin(role) -> bool:
    return normalize_role(role) == Role.PLATFORM_ADMIN


def is_org_admin(role) -> bool:
    """Organization admins; platform operators act as admins everywhere."""
    return normalize_role(role) in (Role.ADMIN, Role.PLATFORM_ADMIN)


def public_user(user: dict) -> dict:
    """Strip server-only fields from a user record before returning it."""
    return {k: v for k, v in user.items() if k not in ("passwordHash", "passwordUpdatedAt")}
