import pytest
from fastapi import HTTPException

from mentorship import notifications
from mentorship.adapters import firestore_adapter


def test_notify_and_list_newest_first(db):
    first = notifications.notify("org-1", "u1", "system", "First", "a")
    second = notifications.notify("org-1", "u1", "system", "Second", "b")
    notifications.notify("org-1", "u2", "system", "Other", "c")
    db.docs("notifications")[first]["timestamp"] = "2026-01-01T00:00:00+00:00"
    db.docs("notifications")[second]["timestamp"] = "2026-01-02T00:00:00+00:00"

    listed = notifications.list_notifications("org-1", "u1")
    assert [n["title"] for n in listed] == ["Second", "First"]
    assert all(n["isRead"] is False for n in listed)


def test_notify_is_best_effort(monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("firestore down")

    monkeypatch.setattr(firestore_adapter, "create_document", _boom)
    assert notifications.notify("org-1", "u1", "goal", "t", "b") is None


def test_owner_only_actions(db):
    note_id = notifications.notify("org-1", "u1", "meeting", "t", "b")
    with pytest.raises(HTTPException) as exc:
        notifications.mark_read(note_id, "u2")
    assert exc.value.status_code == 403
    with pytest.raises(HTTPException) as exc:
        notifications.delete_notification("missing", "u1")
    assert exc.value.status_code == 404

    notifications.mark_read(note_id, "u1")
    assert db.docs("notifications")[note_id]["isRead"] is True


def test_mark_all_read(db):
    for title in ("a", "b", "c"):
        notifications.notify("org-1", "u1", "message", title, "")
    assert notifications.unread_count("org-1", "u1") == 3
    assert notifications.mark_all_read("org-1", "u1") == 3
    assert notifications.unread_count("org-1", "u1") == 0


def test_notification_endpoints(client, people, auth_header):
    note_id = notifications.notify("org-1", "mentee-1", "system", "Hi", "there")
    headers = auth_header("mentee-1", role="MENTEE")

    listing = client.get("/api/v1/notifications", params={"unread_only": True}, headers=headers)
    assert [n["id"] for n in listing.json()] == [note_id]

    assert client.post("/api/v1/notifications/read-all", headers=headers).json() == {"updated": 1}
    assert client.delete(f"/api/v1/notifications/{note_id}", headers=headers).status_code == 204
