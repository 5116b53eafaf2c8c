from typing import Optional

from fastapi import APIRouter
from fastapi import Depends

from mentorship import organizations
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import require_roles
from mentorship.auth import resolve_organization
from mentorship.errors import NotFound
from mentorship.models import Role
from mentorship.schemas import OrganizationUpdate
from mentorship.schemas import ProgramSettings

router = APIRouter(prefix="/api/v1", tags=["organizations"])


@router.get("/organization")
def get_organization(organization_id: Optional[str] = None, session: Session = Depends(current_session)):
    return organizations.require_organization(resolve_organization(session, organization_id))


@router.patch("/organization")
def update_organization(
    body: OrganizationUpdate,
    organization_id: Optional[str] = None,
    session: Session = Depends(require_roles(Role.ADMIN)),
):
    org_id = resolve_organization(session, organization_id)
    return organizations.update_organization(org_id, body.model_dump(exclude_unset=True))


@router.put("/organization/program-settings")
def update_program_settings(body: ProgramSettings, session: Session = Depends(require_roles(Role.ADMIN))):
    return organizations.update_program_settings(session.organization_id, body.model_dump())


@router.get("/organizations/by-code/{code}")
def organization_by_code(code: str):
    org = organizations.get_organization_by_code(code)
    if org is None:
        raise NotFound("Invalid organization code")
    return organizations.public_profile(org)


@router.post("/tasks/trial-reminders")
def trial_reminders(session: Session = Depends(require_roles(Role.PLATFORM_ADMIN))):
    return {"sent": organizations.send_trial_reminders()}


__all__ = ["router"]
