"""Sign-in and sign-up flows.

Three entry paths lead to a user document and a session token:

- an invitation token (the invitee joins the inviting organization with the
  invited role),
- a new organization (the signer becomes its ORGANIZATION_ADMIN),
- an organization code (the signer joins as MENTOR or MENTEE).

Google sign-in and password sign-up share the same find-or-create logic;
password login only looks users up.
"""

from __future__ import annotations

import logging
from typing import Optional

from mentorship import invitations
from mentorship import mailer
from mentorship import organizations
from mentorship import participants
from mentorship.adapters import firestore_adapter as store
from mentorship.auth import check_password
from mentorship.auth import hash_password
from mentorship.auth import issue_session_token
from mentorship.auth import validate_password_strength
from mentorship.auth import verify_google_credential
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import Conflict
from mentorship.errors import NotFound
from mentorship.errors import Unauthorized
from mentorship.models import Role
from mentorship.models import normalize_role
from mentorship.models import public_user

logger = logging.getLogger(__name__)

IMPERSONATION_KEYS = (
    "isImpersonating",
    "originalOperatorId",
    "originalOrganizationId",
    "impersonateUserId",
)
MIN_INVITATION_TOKEN_LENGTH = 20
LOGIN_FAILED = "Invalid email or password"


def reject_impersonation(body: dict) -> None:
    present = [key for key in IMPERSONATION_KEYS if key in body]
    if present:
        raise BadRequest(f"Impersonation fields are not accepted: {', '.join(present)}")


def participant_role(value) -> Role:
    """Self-service signups can only be mentors or mentees."""
    return Role.MENTOR if normalize_role(value) == Role.MENTOR else Role.MENTEE


def session_response(user: dict, event: str) -> dict:
    return {
        "user": public_user(user),
        "organizationId": user.get("organizationId"),
        "token": issue_session_token(user),
        "audit": {"event": event, "userId": user["id"]},
    }


def _pending_invitation(token: str, email: str) -> dict:
    if len(token) < MIN_INVITATION_TOKEN_LENGTH:
        raise BadRequest("Invalid invitation token")
    invitation = store.find_one(
        invitations.COLLECTION,
        [("token", "==", token), ("status", "==", "Pending")],
        timestamp_fields=("expiresAt",),
    )
    if invitation is None:
        raise NotFound("Invitation not found or already used")
    if invitations.is_expired(invitation):
        invitations.mark_expired(invitation["id"])
        raise BadRequest("Invitation has expired")
    if participants.normalize_email(invitation.get("email")) != participants.normalize_email(email):
        raise BadRequest("This invitation was sent to a different email address")
    return invitation


def _find_or_create(
    organization: dict, identity: dict, role: Role, password_hash: Optional[str] = None
) -> tuple[dict, bool]:
    organization_id = organization["id"]
    user = None
    if identity.get("googleId"):
        user = participants.find_by_google_id(identity["googleId"], organization_id)
    if user is None:
        user = participants.find_by_email(identity["email"], organization_id)

    if user is not None:
        if password_hash is not None:
            raise Conflict("An account with this email already exists")
        if identity.get("googleId") and not user.get("googleId"):
            store.update_document(participants.COLLECTION, user["id"], {"googleId": identity["googleId"]})
            user = {**user, "googleId": identity["googleId"]}
        return user, False

    user = participants.create_user(
        organization_id,
        identity["name"],
        identity["email"],
        role,
        picture=identity.get("picture"),
        google_id=identity.get("googleId"),
        password_hash=password_hash,
    )
    mailer.send_welcome_participant(user, organization)
    return user, True


def _join_by_invitation(token: str, identity: dict, password_hash: Optional[str] = None) -> dict:
    invitation = _pending_invitation(token, identity["email"])
    organization = organizations.get_organization(invitation["organizationId"])
    if organization is None:
        raise NotFound("Organization not found")
    role = normalize_role(invitation.get("role"))
    if role not in (Role.ADMIN, Role.MENTOR):
        role = Role.MENTEE
    user, _ = _find_or_create(organization, identity, role, password_hash)
    invitations.accept_invitation(invitation["id"])
    logger.info("Invitation %s accepted by %s", invitation["id"], user["id"])
    return user


def _join_by_code(code: str, identity: dict, role, password_hash: Optional[str] = None) -> dict:
    organization = organizations.get_organization_by_code(code)
    if organization is None:
        raise NotFound("Invalid organization code")
    user, _ = _find_or_create(organization, identity, participant_role(role), password_hash)
    return user


def _create_organization(org_name: str, identity: dict, password_hash: Optional[str] = None) -> dict:
    organization = organizations.create_organization(org_name)
    organizations.set_trial_period(organization["id"])
    user = participants.create_user(
        organization["id"],
        identity["name"],
        identity["email"],
        Role.ADMIN,
        picture=identity.get("picture"),
        google_id=identity.get("googleId"),
        title="Administrator",
        company=org_name,
        password_hash=password_hash,
    )
    mailer.send_welcome_admin(user, organization)
    return user


def google_sign_in(body: dict) -> dict:
    reject_impersonation(body)
    credential = body.get("credential")
    if not credential:
        raise BadRequest("Google credential is required")
    identity = verify_google_credential(credential)

    if body.get("invitationToken"):
        user = _join_by_invitation(body["invitationToken"], identity)
    elif body.get("isNewOrg") and body.get("orgName"):
        user = _create_organization(body["orgName"], identity)
    elif body.get("organizationCode"):
        user = _join_by_code(body["organizationCode"], identity, body.get("role"))
    else:
        raise BadRequest("Organization code, invitation or new organization name is required")
    return session_response(user, "google_sign_in")


def login(email: str, password: str) -> dict:
    email = participants.normalize_email(email)
    if not email or not password:
        raise BadRequest("Email and password are required")
    candidates = store.query_documents(participants.COLLECTION, [("email", "==", email)])
    user = next((u for u in candidates if check_password(u.get("passwordHash"), password)), None)
    if user is None:
        logger.info("Failed password login for %s", email)
        raise Unauthorized(LOGIN_FAILED)
    return session_response(user, "password_login")


def signup(body: dict) -> dict:
    reject_impersonation(body)
    email = participants.normalize_email(body.get("email"))
    name = (body.get("name") or "").strip()
    password = body.get("password") or ""
    if not email or not name:
        raise BadRequest("Name and email are required")
    validate_password_strength(password)
    identity = {"email": email, "name": name}
    password_hash = hash_password(password)

    if body.get("invitationToken"):
        user = _join_by_invitation(body["invitationToken"], identity, password_hash)
    elif body.get("isNewOrg") and body.get("orgName"):
        user = _create_organization(body["orgName"], identity, password_hash)
    elif body.get("organizationCode"):
        user = _join_by_code(body["organizationCode"], identity, body.get("role"), password_hash)
    else:
        raise BadRequest("Organization code, invitation or new organization name is required")
    store.update_document(participants.COLLECTION, user["id"], {"passwordUpdatedAt": utc_now().isoformat()})
    return session_response(user, "password_signup")
