from __future__ import annotations

import datetime
import logging
import secrets
from typing import Optional

from mentorship import mailer
from mentorship import participants
from mentorship.adapters import firestore_adapter as store
from mentorship.auth import hash_password
from mentorship.auth import validate_password_strength
from mentorship.core import get_settings
from mentorship.core import parse_timestamp
from mentorship.core import utc_now
from mentorship.errors import BadRequest

logger = logging.getLogger(__name__)

COLLECTION = "passwordResetTokens"
TOKEN_BYTES = 32
GENERIC_RESPONSE = "If an account exists, a password reset link has been sent."
_TIMESTAMPS = ("createdAt", "expiresAt", "usedAt")


def reset_url(token: str) -> str:
    return f"{get_settings().app_url}/?reset-password&token={token}"


def request_reset(email) -> dict:
    """Start a reset for `email`; the response never reveals if the account exists."""
    if not email or not isinstance(email, str):
        raise BadRequest("Email is required")
    email = participants.normalize_email(email)

    user = participants.find_by_email(email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return {"success": True, "message": GENERIC_RESPONSE}

    token = secrets.token_hex(TOKEN_BYTES)
    ttl = datetime.timedelta(hours=get_settings().password_reset_ttl_hours)
    now = utc_now()
    store.create_document(
        COLLECTION,
        {
            "userId": user["id"],
            "email": email,
            "createdAt": now.isoformat(),
            "expiresAt": (now + ttl).isoformat(),
            "used": False,
        },
        doc_id=token,
    )
    url = reset_url(token)
    if not mailer.send_password_reset(email, user.get("name") or "there", url):
        # mail is down or unconfigured; the link is still recoverable from logs
        logger.warning("Password reset email not sent for user %s, reset URL: %s", user["id"], url)
    return {
        "success": True,
        "message": GENERIC_RESPONSE,
        "audit": {"event": "password_reset_requested", "userId": user["id"]},
    }


def _usable_token(token: str, now: Optional[datetime.datetime] = None) -> dict:
    record = store.get_document(COLLECTION, token, _TIMESTAMPS)
    if record is None:
        raise BadRequest("Invalid or expired reset token")
    if record.get("used"):
        raise BadRequest("This reset token has already been used")
    expires_at = parse_timestamp(record.get("expiresAt"))
    if expires_at is None or expires_at < (now or utc_now()):
        raise BadRequest("Reset token has expired. Please request a new one.")
    return record


def reset_password(token, password) -> dict:
    if not token or not password:
        raise BadRequest("Token and password are required")
    validate_password_strength(password)
    record = _usable_token(token)

    user = participants.get_user(record["userId"])
    if user is None:
        raise BadRequest("User not found")

    now = utc_now().isoformat()
    store.update_document(
        participants.COLLECTION,
        user["id"],
        {"passwordHash": hash_password(password), "passwordUpdatedAt": now},
    )
    store.update_document(COLLECTION, token, {"used": True, "usedAt": now})
    logger.info("Password reset completed for user %s", user["id"])
    return {
        "success": True,
        "message": "Password has been reset successfully",
        "audit": {"event": "password_reset", "userId": user["id"]},
    }
