import requests

from mentorship import core
from mentorship import mailer


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_unconfigured_mail_is_skipped(monkeypatch):
    def _post(*args, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(mailer.requests, "post", _post)
    assert mailer.send_email([{"email": "a@example.com"}], "Hi", "text", "<p>text</p>") is False


def test_send_posts_to_mailtrap(monkeypatch):
    monkeypatch.setenv("MAILTRAP_API_TOKEN", "mt-token")
    calls = []

    def _post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers})
        return FakeResponse()

    monkeypatch.setattr(mailer.requests, "post", _post)
    assert mailer.send_password_reset("a@example.com", "Ann", "https://mentors.test/?reset-password&token=abc")

    call = calls[0]
    assert call["url"] == mailer.SEND_URL
    assert call["headers"]["Authorization"] == "Bearer mt-token"
    assert call["json"]["to"] == [{"email": "a@example.com", "name": "Ann"}]
    assert call["json"]["category"] == "Password Reset"
    assert "token=abc" in call["json"]["text"]
    assert "token=abc" in call["json"]["html"]


def test_sandbox_endpoint(monkeypatch):
    monkeypatch.setenv("MAILTRAP_USE_SANDBOX", "true")
    monkeypatch.setenv("MAILTRAP_INBOX_ID", "42")
    core.get_settings.cache_clear()
    assert mailer._endpoint() == "https://sandbox.api.mailtrap.io/api/send/42"


def test_send_failure_returns_false(monkeypatch):
    monkeypatch.setenv("MAILTRAP_API_TOKEN", "mt-token")
    monkeypatch.setattr(mailer.requests, "post", lambda *a, **k: FakeResponse(500))
    assert mailer.send_email([{"email": "a@example.com"}], "Hi", "t", "<p>t</p>") is False


def test_goal_completed_template(sent_emails):
    mailer.send_goal_completed({"email": "a@example.com", "name": "<b>Ann</b>"}, {"title": "Ship"})
    assert len(sent_emails) == 1
    assert sent_emails[0]["subject"] == "Goal completed: Ship"


def test_missing_address_is_skipped(sent_emails):
    assert mailer.send_welcome_participant({"id": "u1", "name": "No Mail"}, {"name": "Org"}) is False
    assert sent_emails == []


def test_meeting_reminder_wording(sent_emails):
    event = {
        "title": "Sync",
        "date": "2026-03-10",
        "startTime": "13:00",
        "duration": "30m",
        "googleMeetLink": "https://meet.google.com/a",
    }
    mailer.send_meeting_reminder({"email": "a@example.com", "name": "Ann"}, event, 1)
    assert sent_emails[0]["subject"] == "Meeting Reminder: Sync in 1 hour"
    assert "https://meet.google.com/a" in sent_emails[0]["text"]
