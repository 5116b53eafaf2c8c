from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Response

from mentorship import ai
from mentorship import goals
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.errors import Forbidden
from mentorship.schemas import GoalCreate
from mentorship.schemas import GoalProgress
from mentorship.schemas import GoalUpdate
from mentorship.schemas import MilestoneCreate
from mentorship.schemas import MilestoneUpdate

router = APIRouter(prefix="/api/v1", tags=["goals"])


@router.get("/goals")
def list_goals(user_id: Optional[str] = None, session: Session = Depends(current_session)):
    return goals.list_goals(session, user_id)


@router.post("/goals", status_code=201)
def create_goal(body: GoalCreate, session: Session = Depends(current_session)):
    owner = body.userId or session.user_id
    if owner != session.user_id and not session.is_admin:
        raise Forbidden("Cannot create goals for another user")
    return goals.create_goal(session.organization_id, owner, body.title, body.description, body.dueDate)


@router.patch("/goals/{goal_id}")
def update_goal(goal_id: str, body: GoalUpdate, session: Session = Depends(current_session)):
    return goals.update_goal(session, goal_id, body.model_dump(exclude_unset=True))


@router.delete("/goals/{goal_id}", status_code=204, response_class=Response)
def delete_goal(goal_id: str, session: Session = Depends(current_session)):
    goals.delete_goal(session, goal_id)
    return Response(status_code=204)


@router.put("/goals/{goal_id}/progress")
def update_progress(goal_id: str, body: GoalProgress, session: Session = Depends(current_session)):
    return goals.update_goal_progress(session, goal_id, body.progress, body.status)


@router.get("/goals/{goal_id}/milestones")
def list_milestones(goal_id: str, session: Session = Depends(current_session)):
    return goals.list_milestones(session, goal_id)


@router.post("/goals/{goal_id}/milestones", status_code=201)
def create_milestone(goal_id: str, body: MilestoneCreate, session: Session = Depends(current_session)):
    return goals.create_milestone(
        session,
        goal_id,
        body.title,
        body.dueDate,
        description=body.description,
        visible_to_mentor=body.visibleToMentor,
        visible_to_mentee=body.visibleToMentee,
    )


@router.post("/goals/{goal_id}/milestones/suggest")
def suggest_milestones(goal_id: str, apply: bool = False, session: Session = Depends(current_session)):
    goal = goals.get_goal(session, goal_id)
    suggestions = ai.suggest_milestones(goal["title"], goal.get("description", ""), goal.get("dueDate", ""))
    result = {"suggestions": suggestions}
    if apply:
        result["milestones"] = goals.apply_suggested_milestones(session, goal_id, suggestions)
    return result


@router.patch("/milestones/{milestone_id}")
def update_milestone(milestone_id: str, body: MilestoneUpdate, session: Session = Depends(current_session)):
    return goals.update_milestone(session, milestone_id, body.model_dump(exclude_unset=True))


@router.delete("/milestones/{milestone_id}", status_code=204, response_class=Response)
def delete_milestone(milestone_id: str, session: Session = Depends(current_session)):
    goals.delete_milestone(session, milestone_id)
    return Response(status_code=204)


__all__ = ["router"]
