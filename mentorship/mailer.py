"""Transactional email through the Mailtrap send API.

Email is a side channel: every sender returns True/False and never raises,
so a mail outage cannot fail the write that triggered it.
"""

from __future__ import annotations

import html
import logging
from typing import Iterable
from typing import Optional

import requests

from mentorship import secret_store
from mentorship.core import get_settings
from mentorship.models import Role
from mentorship.models import normalize_role

logger = logging.getLogger(__name__)

SEND_URL = "https://send.api.mailtrap.io/api/send"
SANDBOX_URL = "https://sandbox.api.mailtrap.io/api/send/{inbox_id}"
SENDER_NAME = "Meant2Grow"
TIMEOUT_SECONDS = 10


def _endpoint() -> str:
    settings = get_settings()
    if settings.mailtrap_use_sandbox and settings.mailtrap_inbox_id:
        return SANDBOX_URL.format(inbox_id=settings.mailtrap_inbox_id)
    return SEND_URL


def _html(paragraphs: Iterable[str], link: Optional[tuple[str, str]] = None) -> str:
    body = "".join(f"<p>{html.escape(p)}</p>" for p in paragraphs)
    if link:
        label, url = link
        body += f'<p><a href="{html.escape(url, quote=True)}">{html.escape(label)}</a></p>'
    return f"<!DOCTYPE html><html><body>{body}</body></html>"


def send_email(
    to: list[dict], subject: str, text: str, html_body: str, category: str = "Transactional"
) -> bool:
    token = secret_store.load_secret("MAILTRAP_API_TOKEN")
    if not token:
        logger.info("Email service not configured. Would send: %s", subject)
        return False

    settings = get_settings()
    payload = {
        "from": {"email": settings.email_from, "name": SENDER_NAME},
        "reply_to": {"email": settings.email_reply_to},
        "to": to,
        "subject": subject,
        "text": text,
        "html": html_body,
        "category": category,
    }
    try:
        response = requests.post(
            _endpoint(),
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Failed to send email %r: %s", subject, exc)
        return False
    logger.info("Email sent successfully: %s", subject)
    return True


def _recipient(user: dict) -> list[dict]:
    return [{"email": user.get("email"), "name": user.get("name") or ""}]


def _send(user: dict, subject: str, paragraphs: list[str], link=None, category="Transactional") -> bool:
    if not user.get("email"):
        logger.warning("No email address for user %s, skipping %r", user.get("id"), subject)
        return False
    text = "\n\n".join(paragraphs + ([f"{link[0]}: {link[1]}"] if link else []))
    return send_email(_recipient(user), subject, text, _html(paragraphs, link), category)


def send_welcome_admin(user: dict, organization: dict) -> bool:
    app_url = get_settings().app_url
    return _send(
        user,
        f"Welcome to Meant2Grow, {user.get('name')}!",
        [
            f"Hi {user.get('name')},",
            f"Your organization {organization.get('name')} is ready.",
            f"Share your organization code {organization.get('organizationCode')} "
            "or send invitations to bring in mentors and mentees.",
        ],
        ("Open your dashboard", f"{app_url}/dashboard"),
        "Welcome",
    )


def send_welcome_participant(user: dict, organization: dict) -> bool:
    app_url = get_settings().app_url
    role = "mentor" if normalize_role(user.get("role")) == Role.MENTOR else "mentee"
    return _send(
        user,
        f"Welcome to {organization.get('name')}!",
        [
            f"Hi {user.get('name')},",
            f"You have joined {organization.get('name')} as a {role}.",
            "Complete your profile so your program admin can find the right match for you.",
        ],
        ("Complete your profile", f"{app_url}/settings"),
        "Welcome",
    )


def send_match_created(recipient: dict, mentor: dict, mentee: dict) -> bool:
    app_url = get_settings().app_url
    other = mentee if recipient.get("id") == mentor.get("id") else mentor
    return _send(
        recipient,
        "You have a new mentorship match!",
        [
            f"Hi {recipient.get('name')},",
            f"You have been matched with {other.get('name')}.",
            "Say hello and schedule your first meeting.",
        ],
        ("View your match", f"{app_url}/dashboard"),
        "Match",
    )


def send_goal_completed(user: dict, goal: dict) -> bool:
    app_url = get_settings().app_url
    return _send(
        user,
        f"Goal completed: {goal.get('title')}",
        [f"Hi {user.get('name')},", f'Congratulations on completing "{goal.get("title")}"!'],
        ("See your goals", f"{app_url}/goals"),
        "Goal",
    )


def send_invitation(invitation: dict, organization: dict, inviter: Optional[dict]) -> bool:
    inviter_name = (inviter or {}).get("name") or "Your program admin"
    role = "mentor" if normalize_role(invitation.get("role")) == Role.MENTOR else "participant"
    return _send(
        {"email": invitation.get("email"), "name": invitation.get("name")},
        f"You're invited to join {organization.get('name')} on Meant2Grow",
        [
            f"Hi {invitation.get('name')},",
            f"{inviter_name} invited you to join {organization.get('name')} as a {role}.",
        ],
        ("Accept invitation", invitation.get("invitationLink", "")),
        "Invitation",
    )


def send_password_reset(email: str, name: str, reset_url: str) -> bool:
    return _send(
        {"email": email, "name": name},
        "Reset your Meant2Grow password",
        [
            f"Hi {name},",
            "We received a request to reset your password. This link expires in 1 hour.",
            "If you did not ask for this, you can ignore this email.",
        ],
        ("Reset password", reset_url),
        "Password Reset",
    )


def send_meeting_reminder(user: dict, event: dict, hours_until: int) -> bool:
    app_url = get_settings().app_url
    time_until = "1 hour" if hours_until == 1 else f"{hours_until} hours"
    paragraphs = [
        f"Hi {user.get('name')},",
        f"{event.get('title')} starts in {time_until}.",
        f"Date: {event.get('date')} at {event.get('startTime')} ({event.get('duration')})",
    ]
    if event.get("googleMeetLink"):
        paragraphs.append(f"Join: {event['googleMeetLink']}")
    return _send(
        user,
        f"Meeting Reminder: {event.get('title')} in {time_until}",
        paragraphs,
        ("View Calendar", f"{app_url}/calendar"),
        "Reminder",
    )


def send_trial_ending(user: dict, organization: dict, days_remaining: int) -> bool:
    app_url = get_settings().app_url
    time_left = "1 Day" if days_remaining == 1 else f"{days_remaining} Days"
    return _send(
        user,
        f"Your Free Trial Ends in {time_left}",
        [
            f"Hi {user.get('name')},",
            f"Your free trial for {organization.get('name')} ends in {time_left.lower()}.",
            "To continue enjoying all the benefits of Meant2Grow, please upgrade to a paid plan.",
        ],
        ("Upgrade Now", f"{app_url}/settings/billing"),
        "Trial",
    )


def send_custom_email(
    recipients: list[dict], subject: str, body: str, sender: dict, from_platform_operator: bool
) -> bool:
    footer = (
        "This message was sent from a Meant2Grow platform operator."
        if from_platform_operator
        else "This message was sent from your organization's Meant2Grow admin."
    )
    header = f"From: {sender.get('name')} ({sender.get('email')})"
    paragraphs = [header] + [line for line in body.split("\n")] + [footer]
    to = [{"email": r["email"], "name": r.get("name") or ""} for r in recipients if r.get("email")]
    if not to:
        return False
    text = "\n\n".join([header, body, "---", footer])
    return send_email(to, subject, text, _html(paragraphs), "Admin")
