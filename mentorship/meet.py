"""Google Meet space creation through the Meet REST API."""

from __future__ import annotations

import logging
import re
from typing import Optional

import orjson
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from mentorship import secret_store
from mentorship.errors import ServiceUnavailable

logger = logging.getLogger(__name__)

MEET_SCOPE = "https://www.googleapis.com/auth/meetings.space.created"
SPACES_URL = "https://meet.googleapis.com/v2/spaces"
MEETING_CODE = re.compile(r"meet\.google\.com/([a-z-]+)")
TIMEOUT_SECONDS = 15


class MeetError(RuntimeError):
    pass


def _credentials():
    email = secret_store.load_secret("GOOGLE_SERVICE_ACCOUNT_EMAIL")
    key = secret_store.load_multiline_secret("GOOGLE_SERVICE_ACCOUNT_KEY")
    if not email or not key:
        raise ServiceUnavailable("Meet service not configured")
    info = {
        "type": "service_account",
        "client_email": email,
        "private_key": key,
        "token_uri": "https://oauth2.googleapis.com/token",
    }
    return service_account.Credentials.from_service_account_info(info, scopes=[MEET_SCOPE])


def meeting_code(link: str) -> Optional[str]:
    found = MEETING_CODE.search(link or "")
    return found.group(1) if found else None


def create_meet_link(
    title: str, start_time: Optional[str] = None, end_time: Optional[str] = None
) -> dict:
    """Create an open Meet space; raises instead of ever returning a made-up link."""
    session = AuthorizedSession(_credentials())
    body = {"config": {"accessType": "OPEN", "entryPointAccess": "CREATOR_APP"}}
    response = session.post(
        SPACES_URL,
        data=orjson.dumps(body),
        headers={"Content-Type": "application/json"},
        timeout=TIMEOUT_SECONDS,
    )
    if response.status_code >= 400:
        raise MeetError(f"Meet API error {response.status_code}: {response.text}")

    space = response.json()
    link = space.get("meetingUri")
    if not link:
        raise MeetError("Meet API response did not include a meeting link")
    logger.info("Created Meet space %s for %r", space.get("name"), title)
    return {
        "meetLink": link,
        "meetingCode": space.get("meetingCode") or meeting_code(link),
        "expiresAt": end_time,
        "startTime": start_time,
    }
