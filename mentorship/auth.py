"""Authentication helpers for the service.

This module centralizes session token issuing, parsing and validation so
every router can reuse it. Tokens are HS256 JWTs signed with the
`SESSION_SIGNING_KEY` secret and carry the user id (`sub`), organization
(`org`) and role. The FastAPI dependencies `current_session`,
`optional_session` and `require_roles` are what routes use.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Optional

from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from jose import JWTError
from jose import jwt as jose_jwt
from starlette.requests import Request
from werkzeug.security import check_password_hash
from werkzeug.security import generate_password_hash

from mentorship import secret_store
from mentorship.adapters import firestore_adapter as store
from mentorship.core import get_settings
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import Forbidden
from mentorship.errors import ServiceUnavailable
from mentorship.errors import Unauthorized
from mentorship.models import Role
from mentorship.models import is_org_admin
from mentorship.models import is_platform_admin
from mentorship.models import normalize_role

TOKEN_ISSUER = "mentorship-bridge"
TOKEN_ALGORITHM = "HS256"
SIGNING_KEY_SECRET = "SESSION_SIGNING_KEY"
USERS = "users"


@dataclass(frozen=True)
class Session:
    user_id: str
    organization_id: str
    role: Role

    @property
    def is_platform_admin(self) -> bool:
        return is_platform_admin(self.role)

    @property
    def is_admin(self) -> bool:
        return is_org_admin(self.role)


def _signing_key() -> str:
    key = secret_store.load_secret(SIGNING_KEY_SECRET)
    if not key:
        raise ServiceUnavailable("Session signing key not configured")
    return key


def issue_session_token(user: dict) -> str:
    now = utc_now()
    ttl = datetime.timedelta(hours=get_settings().session_ttl_hours)
    role = normalize_role(user.get("role")) or Role.MENTEE
    claims = {
        "sub": user["id"],
        "org": user.get("organizationId"),
        "role": role.value,
        "iss": TOKEN_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jose_jwt.encode(claims, _signing_key(), algorithm=TOKEN_ALGORITHM)


def _extract_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    return auth.split(" ", 1)[1]


def validate_token(token: str) -> dict:
    """Validate the given session token and return its verified claims.

    Raises `Unauthorized` for a bad signature, expired token, wrong issuer or
    missing subject, and `ServiceUnavailable` when no signing key exists.
    """
    key = _signing_key()
    try:
        claims = jose_jwt.decode(token, key, algorithms=[TOKEN_ALGORITHM], issuer=TOKEN_ISSUER)
    except JWTError as exc:
        raise Unauthorized("Invalid or expired token") from exc

    if not claims.get("sub"):
        raise Unauthorized("Token subject missing")
    if normalize_role(claims.get("role")) is None:
        raise Unauthorized("Token role invalid")
    return claims


def validate_token_from_request(request: Request) -> dict:
    """Convenience wrapper that extracts the token from the request and validates it."""
    token = _extract_bearer_token(request)
    if not token:
        raise Unauthorized("Authorization missing or invalid")
    return validate_token(token)


def _session_from_claims(claims: dict) -> Session:
    """Build the session from the stored user, not the token's role claim.

    A token outlives role changes and deletions, so the user document is
    read on every request. A user that is gone, or has moved to another
    organization since the token was issued, is no longer signed in.
    """
    user = store.get_document(USERS, claims["sub"])
    organization_id = claims.get("org") or ""
    if user is None or (user.get("organizationId") or "") != organization_id:
        raise Unauthorized("Session is no longer valid")
    role = normalize_role(user.get("role"))
    if role is None:
        raise Unauthorized("Session is no longer valid")
    return Session(user_id=claims["sub"], organization_id=organization_id, role=role)


def current_session(request: Request) -> Session:
    return _session_from_claims(validate_token_from_request(request))


def optional_session(request: Request) -> Optional[Session]:
    token = _extract_bearer_token(request)
    if not token:
        return None
    return _session_from_claims(validate_token(token))


def require_roles(*roles: Role):
    """Dependency factory: the session role must be one of `roles`.

    Platform admins pass every role check.
    """

    def _dependency(request: Request) -> Session:
        session = current_session(request)
        if session.is_platform_admin or session.role in roles:
            return session
        raise Forbidden()

    return _dependency


def resolve_organization(session: Session, requested: Optional[str] = None) -> str:
    if not requested or requested == session.organization_id:
        return session.organization_id
    if session.is_platform_admin:
        return requested
    raise Forbidden("Cannot access another organization")


def verify_google_credential(credential: str) -> dict:
    """Verify a Google sign-in ID token and return its identity claims."""
    audience = get_settings().google_client_id
    if not audience:
        raise ServiceUnavailable("Google sign-in not configured")
    try:
        claims = google_id_token.verify_oauth2_token(credential, google_requests.Request(), audience)
    except ValueError as exc:
        raise Unauthorized("Invalid Google credential") from exc
    if not claims.get("sub") or not claims.get("email"):
        raise Unauthorized("Google credential missing identity")
    return {
        "googleId": claims["sub"],
        "email": claims["email"],
        "name": claims.get("name") or claims["email"].split("@")[0],
        "picture": claims.get("picture"),
    }


_PASSWORD_RULES = (
    (lambda p: len(p) >= 8, "Password must be at least 8 characters long"),
    (lambda p: re.search(r"[a-z]", p), "Password must contain at least one lowercase letter"),
    (lambda p: re.search(r"[A-Z]", p), "Password must contain at least one uppercase letter"),
    (lambda p: re.search(r"\d", p), "Password must contain at least one number"),
)


def validate_password_strength(password: str) -> None:
    for rule, message in _PASSWORD_RULES:
        if not rule(password):
            raise BadRequest(message)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_password(password_hash: Optional[str], password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)
