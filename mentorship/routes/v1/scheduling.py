from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Response

from mentorship import meet
from mentorship import scheduling
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.auth import require_roles
from mentorship.errors import ServiceUnavailable
from mentorship.models import Role
from mentorship.schemas import EventCreate
from mentorship.schemas import EventUpdate
from mentorship.schemas import MeetCreate

router = APIRouter(prefix="/api/v1", tags=["scheduling"])


@router.get("/events")
def list_events(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    mine: bool = False,
    session: Session = Depends(current_session),
):
    if mine or not session.is_admin:
        events = scheduling.list_events_for_user(session.organization_id, session.user_id, start_date)
        return [e for e in events if not end_date or e.get("date", "") <= end_date]
    return scheduling.list_events(session.organization_id, start_date, end_date)


@router.post("/events", status_code=201)
def create_event(body: EventCreate, session: Session = Depends(current_session)):
    return scheduling.create_event(session, body.model_dump())


@router.patch("/events/{event_id}")
def update_event(event_id: str, body: EventUpdate, session: Session = Depends(current_session)):
    return scheduling.update_event(session, event_id, body.model_dump(exclude_unset=True))


@router.delete("/events/{event_id}", status_code=204, response_class=Response)
def delete_event(event_id: str, session: Session = Depends(current_session)):
    scheduling.delete_event(session, event_id)
    return Response(status_code=204)


@router.post("/meet/create")
def create_meet(body: MeetCreate, session: Session = Depends(current_session)):
    try:
        return meet.create_meet_link(body.title, body.startTime, body.endTime)
    except meet.MeetError as exc:
        raise ServiceUnavailable(f"Failed to create Google Meet link: {exc}") from exc


@router.post("/tasks/meeting-reminders")
def meeting_reminders(session: Session = Depends(require_roles(Role.PLATFORM_ADMIN))):
    return {"sent": scheduling.send_meeting_reminders()}


__all__ = ["router"]
