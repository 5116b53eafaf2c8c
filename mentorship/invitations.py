from __future__ import annotations

import datetime
import logging
from typing import Optional

from mentorship import mailer
from mentorship.adapters import firestore_adapter as store
from mentorship.auth import Session
from mentorship.core import get_settings
from mentorship.core import parse_timestamp
from mentorship.core import random_code
from mentorship.core import today_iso
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import Conflict
from mentorship.errors import Forbidden
from mentorship.errors import NotFound
from mentorship.models import InvitationStatus
from mentorship.models import Role
from mentorship.models import normalize_role
from mentorship.organizations import require_organization
from mentorship.participants import get_user
from mentorship.participants import normalize_email

logger = logging.getLogger(__name__)

COLLECTION = "invitations"
TOKEN_LENGTH = 32
_TIMESTAMPS = ("expiresAt",)

INVITABLE_ROLES = (Role.MENTOR, Role.MENTEE, Role.ADMIN)
REFERRAL_ROLES = (Role.MENTOR, Role.MENTEE)


def generate_invitation_token() -> str:
    return random_code(TOKEN_LENGTH)


def invitation_link(token: str) -> str:
    return f"{get_settings().app_url}/auth?invite={token}"


def _new_expiry() -> str:
    return (utc_now() + datetime.timedelta(days=get_settings().invitation_ttl_days)).isoformat()


def is_expired(invitation: dict, now: Optional[datetime.datetime] = None) -> bool:
    expires_at = parse_timestamp(invitation.get("expiresAt"))
    return expires_at is not None and expires_at < (now or utc_now())


def _expire_if_needed(invitation: Optional[dict]) -> Optional[dict]:
    if invitation is None:
        return None
    if is_expired(invitation):
        store.update_document(COLLECTION, invitation["id"], {"status": InvitationStatus.EXPIRED.value})
        logger.info("Invitation %s expired", invitation["id"])
        return None
    return invitation


def create_invitation(session: Session, email: str, name: str, role) -> dict:
    email = normalize_email(email)
    if not email:
        raise BadRequest("Email is required")
    invited_role = normalize_role(role)
    if invited_role not in INVITABLE_ROLES:
        raise BadRequest("Role must be MENTOR, MENTEE or ORGANIZATION_ADMIN")
    if not session.is_admin and invited_role not in REFERRAL_ROLES:
        raise Forbidden("Only admins can invite administrators")

    organization_id = session.organization_id
    organization = require_organization(organization_id)
    if get_invitation_by_email(email, organization_id) is not None:
        raise Conflict(f"A pending invitation already exists for {email}")

    token = generate_invitation_token()
    data = {
        "organizationId": organization_id,
        "email": email,
        "name": (name or "").strip() or email.split("@")[0],
        "role": invited_role.value,
        "status": InvitationStatus.PENDING.value,
        "sentDate": today_iso(),
        "inviterId": session.user_id,
        "token": token,
        "invitationLink": invitation_link(token),
        "expiresAt": _new_expiry(),
    }
    invitation_id = store.create_document(COLLECTION, data)
    invitation = {"id": invitation_id, **data}
    logger.info("Invitation %s created for %s in %s", invitation_id, email, organization_id)
    mailer.send_invitation(invitation, organization, get_user(session.user_id))
    return invitation


def get_invitation(invitation_id: str) -> Optional[dict]:
    return store.get_document(COLLECTION, invitation_id, _TIMESTAMPS)


def get_invitation_by_token(token: str) -> Optional[dict]:
    """Pending invitation for `token`; expired ones are marked and ignored."""
    if not token:
        return None
    invitation = store.find_one(
        COLLECTION,
        [("token", "==", token), ("status", "==", InvitationStatus.PENDING.value)],
        timestamp_fields=_TIMESTAMPS,
    )
    return _expire_if_needed(invitation)


def get_invitation_by_email(email: str, organization_id: str) -> Optional[dict]:
    invitation = store.find_one(
        COLLECTION,
        [
            ("email", "==", normalize_email(email)),
            ("organizationId", "==", organization_id),
            ("status", "==", InvitationStatus.PENDING.value),
        ],
        timestamp_fields=_TIMESTAMPS,
    )
    return _expire_if_needed(invitation)


def list_invitations(organization_id: str) -> list[dict]:
    return store.query_documents(
        COLLECTION,
        [("organizationId", "==", organization_id)],
        order_by="sentDate",
        descending=True,
        timestamp_fields=_TIMESTAMPS,
    )


def accept_invitation(invitation_id: str) -> None:
    store.update_document(COLLECTION, invitation_id, {"status": InvitationStatus.ACCEPTED.value})


def mark_expired(invitation_id: str) -> None:
    store.update_document(COLLECTION, invitation_id, {"status": InvitationStatus.EXPIRED.value})


def _org_invitation(organization_id: str, invitation_id: str) -> dict:
    invitation = get_invitation(invitation_id)
    if invitation is None or invitation.get("organizationId") != organization_id:
        raise NotFound("Invitation not found")
    return invitation


def revoke_invitation(organization_id: str, invitation_id: str) -> dict:
    invitation = _org_invitation(organization_id, invitation_id)
    if invitation.get("status") != InvitationStatus.PENDING.value:
        raise Conflict(f"Cannot revoke a {invitation.get('status')} invitation")
    store.update_document(COLLECTION, invitation_id, {"status": InvitationStatus.REVOKED.value})
    return {**invitation, "status": InvitationStatus.REVOKED.value}


def resend_invitation(session: Session, invitation_id: str) -> dict:
    invitation = _org_invitation(session.organization_id, invitation_id)
    if invitation.get("status") not in (InvitationStatus.PENDING.value, InvitationStatus.EXPIRED.value):
        raise Conflict(f"Cannot resend a {invitation.get('status')} invitation")

    token = generate_invitation_token()
    updates = {
        "token": token,
        "invitationLink": invitation_link(token),
        "expiresAt": _new_expiry(),
        "sentDate": today_iso(),
        "status": InvitationStatus.PENDING.value,
    }
    store.update_document(COLLECTION, invitation_id, updates)
    invitation = {**invitation, **updates}
    organization = require_organization(session.organization_id)
    mailer.send_invitation(invitation, organization, get_user(session.user_id))
    return invitation


def public_lookup(token: str) -> dict:
    invitation = get_invitation_by_token(token)
    if invitation is None:
        raise NotFound("Invitation not found or expired")
    organization = require_organization(invitation["organizationId"])
    return {
        "email": invitation["email"],
        "name": invitation.get("name"),
        "role": invitation.get("role"),
        "organizationName": organization.get("name"),
    }
