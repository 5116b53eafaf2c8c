import datetime

import pytest
from fastapi import HTTPException

from mentorship import meet
from mentorship import scheduling
from mentorship.auth import Session
from mentorship.errors import ServiceUnavailable
from mentorship.models import Role

UTC = datetime.timezone.utc
MENTOR = Session("mentor-1", "org-1", Role.MENTOR)
NOW = datetime.datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def _event(date, start, **extra):
    return {"id": f"{date}-{start}", "title": "Sync", "date": date, "startTime": start, **extra}


def test_due_reminders_windows():
    events = [
        _event("2026-03-11", "12:00"),  # exactly 24h
        _event("2026-03-11", "12:30"),  # 24.5h floors to 24
        _event("2026-03-11", "11:30"),  # 23.5h floors to 23
        _event("2026-03-10", "13:00"),  # 1h
        _event("2026-03-10", "13:30"),  # 1.5h floors to 1
        _event("2026-03-10", "12:30"),  # 0.5h floors to 0
        _event("2026-03-10", "11:00"),  # past
        _event("2026-03-11", "12:00", reminder24hSent=True),
        _event("2026-03-10", "13:00", reminder1hSent=True),
        _event("bad-date", "13:00"),
    ]
    due = [(event["id"], hours) for event, hours in scheduling.due_reminders(events, NOW)]
    assert due == [
        ("2026-03-11-12:00", 24),
        ("2026-03-11-12:30", 24),
        ("2026-03-10-13:00", 1),
        ("2026-03-10-13:30", 1),
    ]


def test_create_virtual_event_with_meet_link(db, people, monkeypatch):
    monkeypatch.setattr(meet, "create_meet_link", lambda title: {"meetLink": "https://meet.google.com/abc-defg-hij"})
    event = scheduling.create_event(
        MENTOR,
        {
            "title": "Kickoff",
            "date": "2026-03-12",
            "startTime": "09:00",
            "duration": "30m",
            "type": "Virtual",
            "participants": ["mentee-1", "mentee-1", "mentor-1"],
        },
    )
    assert event["googleMeetLink"] == "https://meet.google.com/abc-defg-hij"
    assert event["participants"] == ["mentee-1", "mentor-1"]

    notes = list(db.docs("notifications").values())
    assert len(notes) == 1
    assert notes[0]["userId"] == "mentee-1"
    assert notes[0]["title"] == "New Meeting Scheduled"
    assert notes[0]["body"] == 'Grace Hopper scheduled "Kickoff" on 2026-03-12 at 09:00'


def test_meet_failure_keeps_event(db, people, monkeypatch):
    def _fail(title):
        raise ServiceUnavailable("Meet service not configured")

    monkeypatch.setattr(meet, "create_meet_link", _fail)
    event = scheduling.create_event(
        MENTOR, {"title": "Chat", "date": "2026-03-12", "startTime": "10:00", "duration": "1h", "type": "Virtual"}
    )
    assert "googleMeetLink" not in event
    assert event["id"] in db.docs("calendarEvents")


def test_event_validation(db, people):
    with pytest.raises(HTTPException):
        scheduling.create_event(MENTOR, {"title": "x", "date": "12/03/2026", "startTime": "10:00", "duration": "1h"})
    with pytest.raises(HTTPException):
        scheduling.create_event(MENTOR, {"title": "x", "date": "2026-03-12", "duration": "1h"})


def test_list_events_bounds(db, people):
    for date in ("2026-03-01", "2026-03-10", "2026-03-20"):
        db.add("calendarEvents", {"organizationId": "org-1", "title": date, "date": date, "startTime": "10:00", "participants": ["mentee-1"]})
    db.add("calendarEvents", {"organizationId": "org-2", "title": "other", "date": "2026-03-10", "startTime": "10:00"})

    titles = [e["title"] for e in scheduling.list_events("org-1", "2026-03-05", "2026-03-15")]
    assert titles == ["2026-03-10"]
    assert len(scheduling.list_events_for_user("org-1", "mentee-1")) == 3
    assert scheduling.list_events_for_user("org-1", "mentee-2") == []


def test_send_meeting_reminders(db, people, sent_emails):
    event_id = db.add(
        "calendarEvents",
        {
            "organizationId": "org-1",
            "title": "Review",
            "date": "2026-03-11",
            "startTime": "12:00",
            "duration": "1h",
            "mentorId": "mentor-1",
            "menteeId": "mentee-1",
            "participants": ["mentee-1"],
        },
    )
    assert scheduling.send_meeting_reminders(NOW) == 1
    assert db.docs("calendarEvents")[event_id]["reminder24hSent"] is True
    assert sorted(m["to"][0]["email"] for m in sent_emails) == ["mentee-1@example.com", "mentor-1@example.com"]
    assert sent_emails[0]["subject"] == "Meeting Reminder: Review in 24 hours"
    assert len(db.docs("notifications")) == 2

    assert scheduling.send_meeting_reminders(NOW) == 0


def test_only_organizer_or_admin_edits(db, people, monkeypatch):
    monkeypatch.setattr(meet, "create_meet_link", lambda title: {"meetLink": "https://meet.google.com/x"})
    event = scheduling.create_event(
        MENTOR, {"title": "Mine", "date": "2026-03-12", "startTime": "10:00", "duration": "1h", "type": "In-Person"}
    )
    with pytest.raises(HTTPException) as exc:
        scheduling.update_event(Session("mentee-1", "org-1", Role.MENTEE), event["id"], {"title": "Theirs"})
    assert exc.value.status_code == 403
    moved = scheduling.update_event(MENTOR, event["id"], {"date": "2026-03-13"})
    assert moved["reminder24hSent"] is False
    scheduling.delete_event(Session("admin", "org-1", Role.ADMIN), event["id"])
    assert db.docs("calendarEvents") == {}


def test_meeting_code_pattern():
    assert meet.meeting_code("https://meet.google.com/abc-defg-hij") == "abc-defg-hij"
    assert meet.meeting_code("https://example.com") is None


def test_meet_requires_credentials():
    with pytest.raises(HTTPException) as exc:
        meet.create_meet_link("Sync")
    assert exc.value.status_code == 503
    assert exc.value.detail == "Meet service not configured"


def test_meet_endpoint_unconfigured(client, people, auth_header):
    headers = auth_header("mentor-1", role="MENTOR")
    response = client.post("/api/v1/meet/create", json={"title": "Sync"}, headers=headers)
    assert response.status_code == 503


def test_reminder_task_requires_platform_admin(client, people, auth_header):
    response = client.post("/api/v1/tasks/meeting-reminders", headers=auth_header("admin"))
    assert response.status_code == 403
    response = client.post("/api/v1/tasks/meeting-reminders", headers=auth_header("op", "org-0", "PLATFORM_ADMIN"))
    assert response.status_code == 200
    assert response.json() == {"sent": 0}
