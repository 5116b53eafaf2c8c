from fastapi import APIRouter
from fastapi import Depends

from mentorship import ai
from mentorship import matching
from mentorship import participants
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import require_roles
from mentorship.models import Role
from mentorship.schemas import GoalBreakdownRequest
from mentorship.schemas import MatchSuggestionRequest
from mentorship.schemas import MilestoneSuggestionRequest

router = APIRouter(prefix="/api/v1/ai", tags=["ai"])


@router.post("/match-suggestions")
def match_suggestions(body: MatchSuggestionRequest, session: Session = Depends(require_roles(Role.ADMIN))):
    mentee = participants.get_participant(session.organization_id, body.menteeId)
    mentors = matching.mentors(participants.list_participants(session.organization_id))
    return ai.get_match_suggestions(mentee, mentors)


@router.get("/resources")
def recommended_resources(session: Session = Depends(current_session)):
    profile = participants.get_participant(session.organization_id, session.user_id)
    return ai.get_recommended_resources(profile)


@router.post("/goal-breakdown")
def goal_breakdown(body: GoalBreakdownRequest, session: Session = Depends(current_session)):
    return ai.breakdown_goal(body.description)


@router.post("/milestones")
def milestones(body: MilestoneSuggestionRequest, session: Session = Depends(current_session)):
    return ai.suggest_milestones(body.title, body.description, body.dueDate)


__all__ = ["router"]
