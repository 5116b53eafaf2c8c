from __future__ import annotations

import datetime
import logging
import math
from typing import Iterable
from typing import Optional

from mentorship import mailer
from mentorship import meet
from mentorship import participants
from mentorship.adapters import firestore_adapter as store
from mentorship.auth import Session
from mentorship.core import utc_now
from mentorship.errors import BadRequest
from mentorship.errors import Forbidden
from mentorship.errors import NotFound
from mentorship.models import NotificationType
from mentorship.notifications import notify

logger = logging.getLogger(__name__)

COLLECTION = "calendarEvents"
EDITABLE_FIELDS = (
    "title",
    "date",
    "startTime",
    "duration",
    "type",
    "description",
    "participants",
    "mentorId",
    "menteeId",
)
REMINDER_FLAGS = {24: "reminder24hSent", 1: "reminder1hSent"}


def _check_when(date: str, start_time: str) -> None:
    try:
        datetime.date.fromisoformat(date)
        datetime.datetime.strptime(start_time, "%H:%M")
    except (TypeError, ValueError) as exc:
        raise BadRequest("date must be YYYY-MM-DD and startTime HH:MM") from exc


def event_start(event: dict) -> Optional[datetime.datetime]:
    try:
        start = datetime.datetime.strptime(f"{event['date']} {event['startTime']}", "%Y-%m-%d %H:%M")
    except (KeyError, TypeError, ValueError):
        return None
    return start.replace(tzinfo=datetime.timezone.utc)


def _unique(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def create_event(session: Session, data: dict) -> dict:
    for field in ("title", "date", "startTime", "duration"):
        if not data.get(field):
            raise BadRequest(f"{field} is required")
    _check_when(data["date"], data["startTime"])

    record = {k: data.get(k) for k in EDITABLE_FIELDS}
    record.update(
        {
            "organizationId": session.organization_id,
            "type": data.get("type") or "Virtual",
            "participants": _unique(data.get("participants") or []),
            "createdBy": session.user_id,
            "createdAt": utc_now(),
        }
    )

    if record["type"] == "Virtual":
        try:
            link = meet.create_meet_link(record["title"])
            record["googleMeetLink"] = link["meetLink"]
        except Exception as exc:
            logger.error("Could not create Meet link for %r: %s", record["title"], exc)

    event_id = store.create_document(COLLECTION, record)
    event = store.get_document(COLLECTION, event_id)

    creator = participants.get_user(session.user_id) or {}
    creator_name = creator.get("name") or "Someone"
    for user_id in _attendees(event):
        if user_id == session.user_id:
            continue
        notify(
            session.organization_id,
            user_id,
            NotificationType.MEETING,
            "New Meeting Scheduled",
            f'{creator_name} scheduled "{event["title"]}" on {event["date"]} at {event["startTime"]}',
        )
    return event


def _attendees(event: dict) -> list[str]:
    return _unique([*(event.get("participants") or []), event.get("mentorId"), event.get("menteeId")])


def list_events(
    organization_id: str, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> list[dict]:
    filters = [("organizationId", "==", organization_id)]
    if start_date:
        filters.append(("date", ">=", start_date))
    events = store.query_documents(COLLECTION, filters, order_by="date")
    if end_date:
        events = [e for e in events if e.get("date", "") <= end_date]
    return events


def list_events_for_user(organization_id: str, user_id: str, start_date: Optional[str] = None) -> list[dict]:
    return [e for e in list_events(organization_id, start_date) if user_id in _attendees(e)]


def _owned_event(session: Session, event_id: str) -> dict:
    event = store.get_document(COLLECTION, event_id)
    if event is None or event.get("organizationId") != session.organization_id:
        raise NotFound("Event not found")
    if event.get("createdBy") != session.user_id and not session.is_admin:
        raise Forbidden("Only the organizer can change this event")
    return event


def update_event(session: Session, event_id: str, updates: dict) -> dict:
    event = _owned_event(session, event_id)
    unknown = set(updates) - set(EDITABLE_FIELDS)
    if unknown:
        raise BadRequest(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
    if "date" in updates or "startTime" in updates:
        _check_when(updates.get("date", event.get("date")), updates.get("startTime", event.get("startTime")))
        # a moved meeting needs fresh reminders
        updates = {**updates, "reminder24hSent": False, "reminder1hSent": False}
    if "participants" in updates:
        updates["participants"] = _unique(updates["participants"] or [])
    if updates:
        store.update_document(COLLECTION, event_id, updates)
    return {**event, **updates}


def delete_event(session: Session, event_id: str) -> None:
    _owned_event(session, event_id)
    store.delete_document(COLLECTION, event_id)


def due_reminders(events: Iterable[dict], now: datetime.datetime) -> list[tuple[dict, int]]:
    due = []
    for event in events:
        start = event_start(event)
        if start is None or start <= now:
            continue
        hours = math.floor((start - now).total_seconds() / 3600)
        if 23 < hours <= 24 and not event.get("reminder24hSent"):
            due.append((event, 24))
        elif 0 < hours <= 1 and not event.get("reminder1hSent"):
            due.append((event, 1))
    return due


def send_meeting_reminders(now: Optional[datetime.datetime] = None) -> int:
    now = now or utc_now()
    events = store.query_documents(COLLECTION, [("date", ">=", now.date().isoformat())])
    sent = 0
    for event, hours in due_reminders(events, now):
        for user_id in _attendees(event):
            user = participants.get_user(user_id)
            if user is None:
                continue
            mailer.send_meeting_reminder(user, event, hours)
            notify(
                event["organizationId"],
                user_id,
                NotificationType.MEETING,
                f"Meeting in {hours} hour{'s' if hours != 1 else ''}",
                f'"{event["title"]}" starts at {event["startTime"]} on {event["date"]}',
            )
        store.update_document(COLLECTION, event["id"], {REMINDER_FLAGS[hours]: True})
        sent += 1
    logger.info("Sent %d meeting reminders", sent)
    return sent
