from fastapi import APIRouter
from fastapi import Depends
from fastapi import Response

from mentorship import dashboard
from mentorship import mailer
from mentorship import organizations
from mentorship import participants
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import require_roles
from mentorship.errors import BadRequest
from mentorship.models import Role
from mentorship.models import public_user
from mentorship.schemas import CustomEmail

router = APIRouter(prefix="/api/v1", tags=["dashboard"])

platform_only = require_roles(Role.PLATFORM_ADMIN)


@router.get("/dashboard")
def get_dashboard(session: Session = Depends(current_session)):
    return dashboard.dashboard_for(session)


@router.get("/platform/stats")
def platform_stats(session: Session = Depends(platform_only)):
    return dashboard.platform_stats()


@router.get("/platform/organizations")
def platform_organizations(session: Session = Depends(platform_only)):
    return organizations.list_organizations()


@router.delete("/platform/organizations/{organization_id}", status_code=204, response_class=Response)
def delete_organization(organization_id: str, session: Session = Depends(platform_only)):
    organizations.delete_organization(organization_id)
    return Response(status_code=204)


@router.get("/platform/users")
def platform_users(session: Session = Depends(platform_only)):
    return [public_user(u) for u in participants.list_all_users()]


@router.post("/email/custom")
def custom_email(body: CustomEmail, session: Session = Depends(require_roles(Role.ADMIN))):
    recipients = [
        participants.get_participant(session.organization_id, uid) for uid in dict.fromkeys(body.userIds)
    ]
    if not recipients:
        raise BadRequest("At least one recipient is required")
    sender = participants.get_user(session.user_id) or {}
    sent = mailer.send_custom_email(recipients, body.subject, body.body, sender, session.is_platform_admin)
    return {"sent": sent, "recipients": len(recipients)}


__all__ = ["router"]
