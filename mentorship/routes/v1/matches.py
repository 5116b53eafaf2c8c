from typing import Optional

from fastapi import APIRouter
from fastapi import Depends

from mentorship import matching
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import require_roles
from mentorship.models import Role
from mentorship.schemas import MatchCreate
from mentorship.schemas import MatchUpdate

router = APIRouter(prefix="/api/v1", tags=["matching"])

admin_only = require_roles(Role.ADMIN)


@router.get("/matching/bench")
def bench(
    mentee_id: Optional[str] = None,
    search: str = "",
    use_ai: bool = False,
    session: Session = Depends(admin_only),
):
    return matching.bench(session.organization_id, mentee_id, search, use_ai)


@router.get("/matches")
def list_matches(session: Session = Depends(admin_only)):
    return matching.list_matches(session.organization_id)


@router.get("/matches/page")
def list_matches_page(
    page_size: int = 20, cursor: Optional[str] = None, session: Session = Depends(admin_only)
):
    return matching.list_matches_page(session.organization_id, page_size, cursor)


@router.get("/matches/mine")
def my_matches(session: Session = Depends(current_session)):
    return matching.matches_for_user(session.organization_id, session.user_id)


@router.post("/matches", status_code=201)
def create_match(body: MatchCreate, session: Session = Depends(admin_only)):
    return matching.create_bridge(session.organization_id, body.mentorId, body.menteeId, body.notes)


@router.post("/matches/{match_id}/complete")
def complete_match(match_id: str, session: Session = Depends(admin_only)):
    return matching.complete_bridge(session.organization_id, match_id)


@router.patch("/matches/{match_id}")
def update_match(match_id: str, body: MatchUpdate, session: Session = Depends(admin_only)):
    return matching.update_bridge_notes(session.organization_id, match_id, body.notes)


__all__ = ["router"]
