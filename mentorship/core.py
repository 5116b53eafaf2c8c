"""
Core helpers used across the app (settings, Firestore client and shared
helper functions).

Every module reaches Firestore through `_get_firestore_client` so tests can
swap the client at a single seam.
"""

from __future__ import annotations

import datetime
import os
import secrets
from dataclasses import dataclass
from functools import lru_cache
from typing import Any
from typing import Optional

from google.cloud import firestore

# Removed ambiguous characters (0/O, 1/I)
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    app_url: str
    project: Optional[str]
    google_client_id: Optional[str]
    session_ttl_hours: int
    invitation_ttl_days: int
    password_reset_ttl_hours: int
    trial_period_days: int
    gemini_model: str
    mailtrap_use_sandbox: bool
    mailtrap_inbox_id: Optional[str]
    email_from: str
    email_reply_to: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read the service settings from the environment once per process."""
    return Settings(
        app_url=os.environ.get("APP_URL", "https://meant2grow.com").rstrip("/"),
        project=(
            os.environ.get("GCP_PROJECT")
            or os.environ.get("GCP_PROJECT_ID")
            or os.environ.get("GOOGLE_CLOUD_PROJECT")
        ),
        google_client_id=os.environ.get("GOOGLE_CLIENT_ID"),
        session_ttl_hours=_env_int("SESSION_TTL_HOURS", 24),
        invitation_ttl_days=_env_int("INVITATION_TTL_DAYS", 30),
        password_reset_ttl_hours=_env_int("PASSWORD_RESET_TTL_HOURS", 1),
        trial_period_days=_env_int("TRIAL_PERIOD_DAYS", 14),
        gemini_model=os.environ.get("GEMINI_MODEL", "gemini-2.5-flash"),
        mailtrap_use_sandbox=os.environ.get("MAILTRAP_USE_SANDBOX", "").lower() in ("1", "true", "yes"),
        mailtrap_inbox_id=os.environ.get("MAILTRAP_INBOX_ID"),
        email_from=os.environ.get("EMAIL_FROM", "no-reply@meant2grow.com"),
        email_reply_to=os.environ.get("EMAIL_REPLY_TO", "support@meant2grow.com"),
    )


@lru_cache(maxsize=1)
def _get_firestore_client() -> Optional[firestore.Client]:
    """Return a Firestore client for the current project, or None on error.

    If a project cannot be determined, the client is created without an
    explicit project and will attempt to use application default credentials.
    On any exception, None is returned so higher-level code can treat
    Firestore as a dependent service that is unavailable.
    """
    try:
        proj = get_settings().project
        return firestore.Client(project=proj) if proj else firestore.Client()
    except Exception:
        return None


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc)


def today_iso() -> str:
    return utc_now().date().isoformat()


def convert_timestamp(value: Any) -> str:
    """Normalize a stored timestamp into an ISO-8601 string.

    Firestore hands back datetimes (DatetimeWithNanoseconds); older documents
    may hold ISO strings already. Missing values read as now.
    """
    if not value:
        return utc_now().isoformat()
    if isinstance(value, str):
        return value
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value.isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    return utc_now().isoformat()


def parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    """Parse a stored timestamp into an aware datetime, or None if unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value if value.tzinfo else value.replace(tzinfo=datetime.timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=datetime.timezone.utc)
    return None


def random_code(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
