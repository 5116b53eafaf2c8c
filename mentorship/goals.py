from __future__ import annotations

import logging
from typing import Optional

from mentorship import mailer
from mentorship import matching
from mentorship import participants
from mentorship.adapters import firestore_adapter as store
from mentorship.auth import Session
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import Forbidden
from mentorship.errors import NotFound
from mentorship.models import GoalStatus
from mentorship.models import NotificationType
from mentorship.models import Role
from mentorship.notifications import notify

logger = logging.getLogger(__name__)

COLLECTION = "goals"
MILESTONES = "milestones"
GOAL_FIELDS = ("title", "description", "dueDate")
MILESTONE_FIELDS = ("title", "description", "dueDate", "visibleToMentor", "visibleToMentee")
_MILESTONE_TIMESTAMPS = ("createdAt", "completedAt")


def clamp_progress(progress) -> int:
    return max(0, min(100, int(progress)))


def derive_status(progress: int) -> GoalStatus:
    if progress <= 0:
        return GoalStatus.NOT_STARTED
    if progress >= 100:
        return GoalStatus.COMPLETED
    return GoalStatus.IN_PROGRESS


def create_goal(
    organization_id: str, user_id: str, title: str, description: str = "", due_date: str = ""
) -> dict:
    if not (title or "").strip():
        raise BadRequest("Goal title is required")
    data = {
        "organizationId": organization_id,
        "userId": user_id,
        "title": title.strip(),
        "description": description or "",
        "progress": 0,
        "status": GoalStatus.NOT_STARTED.value,
        "dueDate": due_date,
    }
    goal_id = store.create_document(COLLECTION, data)
    return {"id": goal_id, **data}


def can_view_goals(session: Session, owner_id: str) -> bool:
    """Owners and admins always; the owner's active mentor unless goals are private."""
    if session.user_id == owner_id or session.is_admin:
        return True
    if session.role != Role.MENTOR:
        return False
    owner = participants.get_user(owner_id)
    if owner is None or owner.get("goalsPublic") is False:
        return False
    return session.user_id in matching.active_mentor_ids(session.organization_id, owner_id)


def get_goal(session: Session, goal_id: str) -> dict:
    goal = store.get_document(COLLECTION, goal_id)
    foreign = goal is not None and goal.get("organizationId") != session.organization_id
    if goal is None or (foreign and not session.is_platform_admin):
        raise NotFound("Goal not found")
    if not can_view_goals(session, goal["userId"]):
        raise Forbidden("You cannot view this goal")
    return goal


def _editable_goal(session: Session, goal_id: str) -> dict:
    goal = get_goal(session, goal_id)
    if goal["userId"] != session.user_id and not session.is_admin:
        raise Forbidden("Only the goal owner can change it")
    return goal


def list_goals(session: Session, user_id: Optional[str] = None) -> list[dict]:
    filters = [("organizationId", "==", session.organization_id)]
    if user_id:
        if not can_view_goals(session, user_id):
            raise Forbidden("You cannot view these goals")
        filters.append(("userId", "==", user_id))
    elif not session.is_admin:
        filters.append(("userId", "==", session.user_id))
    return store.query_documents(COLLECTION, filters, order_by="dueDate")


def update_goal(session: Session, goal_id: str, updates: dict) -> dict:
    goal = _editable_goal(session, goal_id)
    unknown = set(updates) - set(GOAL_FIELDS)
    if unknown:
        raise BadRequest(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
    if "title" in updates and not str(updates["title"] or "").strip():
        raise BadRequest("Goal title is required")
    if updates:
        store.update_document(COLLECTION, goal_id, updates)
    return {**goal, **updates}


def update_goal_progress(session: Session, goal_id: str, progress, status: Optional[str] = None) -> dict:
    goal = _editable_goal(session, goal_id)
    progress = clamp_progress(progress)
    new_status = GoalStatus(status) if status else derive_status(progress)

    store.update_document(COLLECTION, goal_id, {"progress": progress, "status": new_status.value})
    updated = {**goal, "progress": progress, "status": new_status.value}

    if new_status == GoalStatus.COMPLETED and goal.get("status") != GoalStatus.COMPLETED.value:
        logger.info("Goal %s completed by %s", goal_id, goal["userId"])
        notify(
            goal["organizationId"],
            goal["userId"],
            NotificationType.GOAL,
            "Goal Completed! 🎉",
            f'Congratulations! You\'ve completed "{goal["title"]}"',
        )
        owner = participants.get_user(goal["userId"])
        if owner is not None:
            mailer.send_goal_completed(owner, updated)
    return updated


def delete_goal(session: Session, goal_id: str) -> None:
    _editable_goal(session, goal_id)
    for milestone in store.query_documents(MILESTONES, [("goalId", "==", goal_id)]):
        store.delete_document(MILESTONES, milestone["id"])
    store.delete_document(COLLECTION, goal_id)


def create_milestone(
    session: Session,
    goal_id: str,
    title: str,
    due_date: str,
    description: str = "",
    visible_to_mentor: bool = True,
    visible_to_mentee: bool = True,
) -> dict:
    goal = get_goal(session, goal_id)
    if not (title or "").strip():
        raise BadRequest("Milestone title is required")
    data = {
        "goalId": goal["id"],
        "organizationId": goal["organizationId"],
        "title": title.strip(),
        "description": description or "",
        "dueDate": due_date,
        "completed": False,
        "createdBy": session.user_id,
        "createdAt": utc_now(),
        "visibleToMentor": visible_to_mentor,
        "visibleToMentee": visible_to_mentee,
    }
    milestone_id = store.create_document(MILESTONES, data)
    return store.get_document(MILESTONES, milestone_id, _MILESTONE_TIMESTAMPS)


def visible_milestones(milestones: list[dict], goal: dict, session: Session) -> list[dict]:
    if session.user_id == goal["userId"] or session.is_admin:
        return milestones
    if session.role == Role.MENTOR:
        return [m for m in milestones if m.get("visibleToMentor", True)]
    return [m for m in milestones if m.get("visibleToMentee", True)]


def list_milestones(session: Session, goal_id: str) -> list[dict]:
    goal = get_goal(session, goal_id)
    milestones = store.query_documents(
        MILESTONES, [("goalId", "==", goal_id)], order_by="dueDate", timestamp_fields=_MILESTONE_TIMESTAMPS
    )
    return visible_milestones(milestones, goal, session)


def _milestone(session: Session, milestone_id: str) -> tuple[dict, dict]:
    milestone = store.get_document(MILESTONES, milestone_id, _MILESTONE_TIMESTAMPS)
    if milestone is None:
        raise NotFound("Milestone not found")
    goal = get_goal(session, milestone["goalId"])
    if not visible_milestones([milestone], goal, session):
        raise NotFound("Milestone not found")
    return milestone, goal


def _editable_milestone(session: Session, milestone_id: str) -> dict:
    """The goal owner and admins change any milestone; others only their own."""
    milestone, goal = _milestone(session, milestone_id)
    if session.user_id in (goal["userId"], milestone.get("createdBy")) or session.is_admin:
        return milestone
    raise Forbidden("Only the goal owner can change this milestone")


def toggle_milestone(session: Session, milestone_id: str, completed: bool) -> dict:
    milestone = _editable_milestone(session, milestone_id)
    updates = {"completed": bool(completed), "completedAt": utc_now().isoformat() if completed else None}
    store.update_document(MILESTONES, milestone_id, updates)
    return {**milestone, **updates}


def update_milestone(session: Session, milestone_id: str, updates: dict) -> dict:
    milestone = _editable_milestone(session, milestone_id)
    if "completed" in updates:
        milestone = toggle_milestone(session, milestone_id, updates.pop("completed"))
    unknown = set(updates) - set(MILESTONE_FIELDS)
    if unknown:
        raise BadRequest(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
    if updates:
        store.update_document(MILESTONES, milestone_id, updates)
    return {**milestone, **updates}


def delete_milestone(session: Session, milestone_id: str) -> None:
    _editable_milestone(session, milestone_id)
    store.delete_document(MILESTONES, milestone_id)


def apply_suggested_milestones(session: Session, goal_id: str, suggestions: list[dict]) -> list[dict]:
    return [
        create_milestone(
            session,
            goal_id,
            s["title"],
            s.get("suggestedDueDate") or "",
            description=s.get("description") or "",
        )
        for s in suggestions
    ]
