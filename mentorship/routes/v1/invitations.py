from fastapi import APIRouter
from fastapi import Depends

from mentorship import invitations
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import require_roles
from mentorship.models import Role
from mentorship.schemas import InvitationCreate

router = APIRouter(prefix="/api/v1/invitations", tags=["invitations"])


@router.post("", status_code=201)
def create_invitation(body: InvitationCreate, session: Session = Depends(current_session)):
    return invitations.create_invitation(session, body.email, body.name, body.role)


@router.get("")
def list_invitations(session: Session = Depends(require_roles(Role.ADMIN))):
    return invitations.list_invitations(session.organization_id)


@router.get("/lookup/{token}")
def lookup_invitation(token: str):
    return invitations.public_lookup(token)


@router.post("/{invitation_id}/revoke")
def revoke_invitation(invitation_id: str, session: Session = Depends(require_roles(Role.ADMIN))):
    return invitations.revoke_invitation(session.organization_id, invitation_id)


@router.post("/{invitation_id}/resend")
def resend_invitation(invitation_id: str, session: Session = Depends(require_roles(Role.ADMIN))):
    return invitations.resend_invitation(session, invitation_id)


__all__ = ["router"]
