from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Response

from mentorship import participants
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import require_roles
from mentorship.auth import resolve_organization
from mentorship.errors import BadRequest
from mentorship.errors import NotFound
from mentorship.models import Role
from mentorship.models import normalize_role
from mentorship.models import public_user
from mentorship.schemas import ProfileUpdate
from mentorship.schemas import RoleChange

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("")
def list_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    organization_id: Optional[str] = None,
    session: Session = Depends(current_session),
):
    wanted = None
    if role:
        wanted = normalize_role(role)
        if wanted is None:
            raise BadRequest(f"Unknown role: {role}")
    org_id = resolve_organization(session, organization_id)
    return [public_user(u) for u in participants.list_participants(org_id, wanted, search)]


@router.get("/page")
def list_users_page(
    page_size: int = 20,
    cursor: Optional[str] = None,
    organization_id: Optional[str] = None,
    session: Session = Depends(current_session),
):
    org_id = resolve_organization(session, organization_id)
    page = participants.list_participants_page(org_id, page_size, cursor)
    page["data"] = [public_user(u) for u in page["data"]]
    return page


@router.get("/me")
def me(session: Session = Depends(current_session)):
    user = participants.get_user(session.user_id)
    if user is None:
        raise NotFound("User not found")
    return public_user(user)


@router.get("/{user_id}")
def get_user(user_id: str, session: Session = Depends(current_session)):
    if session.is_platform_admin:
        user = participants.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return public_user(user)
    return public_user(participants.get_participant(session.organization_id, user_id))


@router.patch("/{user_id}")
def update_user(user_id: str, body: ProfileUpdate, session: Session = Depends(current_session)):
    return public_user(participants.update_profile(session, user_id, body.model_dump(exclude_unset=True)))


@router.put("/{user_id}/role")
def change_role(user_id: str, body: RoleChange, session: Session = Depends(require_roles(Role.ADMIN))):
    return public_user(participants.change_role(session, user_id, body.role))


@router.delete("/{user_id}", status_code=204, response_class=Response)
def delete_user(user_id: str, session: Session = Depends(require_roles(Role.ADMIN))):
    participants.delete_participant(session, user_id)
    return Response(status_code=204)


__all__ = ["router"]
