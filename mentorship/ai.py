"""Gemini-backed suggestions.

Every function degrades instead of raising: without a `GEMINI_API_KEY`, or
when the model call or its JSON fails, callers get an empty list or the
documented fallback.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any
from typing import Optional

import google.generativeai as genai
import orjson

from mentorship import secret_store
from mentorship.core import get_settings
from mentorship.models import RESOURCE_TYPES

logger = logging.getLogger(__name__)

API_KEY_SECRET = "GEMINI_API_KEY"

FALLBACK_STEPS = ["Define clear objectives", "Set milestones", "Review progress"]

MATCH_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "mentorId": {"type": "string"},
            "score": {"type": "number", "description": "Match score from 0 to 100"},
            "reason": {"type": "string", "description": "One sentence on why this mentor fits"},
        },
        "required": ["mentorId", "score", "reason"],
    },
}

RESOURCE_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "type": {"type": "string", "enum": list(RESOURCE_TYPES)},
            "description": {"type": "string"},
            "url": {"type": "string"},
        },
        "required": ["title", "type", "description", "url"],
    },
}

BREAKDOWN_SCHEMA = {
    "type": "object",
    "properties": {"steps": {"type": "array", "items": {"type": "string"}}},
    "required": ["steps"],
}

MILESTONE_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "description": {"type": "string"},
            "suggestedDueDate": {"type": "string", "description": "YYYY-MM-DD"},
        },
        "required": ["title", "description", "suggestedDueDate"],
    },
}


def _configured() -> bool:
    api_key = secret_store.load_secret(API_KEY_SECRET)
    if not api_key:
        return False
    genai.configure(api_key=api_key)
    return True


def _generate(prompt: str, schema: dict) -> Any:
    model = genai.GenerativeModel(get_settings().gemini_model)
    response = model.generate_content(
        prompt,
        generation_config={"response_mime_type": "application/json", "response_schema": schema},
    )
    return orjson.loads(response.text)


def _ask(prompt: str, schema: dict, purpose: str) -> Optional[Any]:
    if not _configured():
        logger.info("Gemini API key not configured, skipping %s", purpose)
        return None
    try:
        return _generate(prompt, schema)
    except Exception as exc:
        logger.error("Gemini %s failed: %s", purpose, exc)
        return None


def _profile(user: dict, *fields: str) -> dict:
    return {f: user.get(f) for f in fields}


def get_match_suggestions(mentee: dict, mentors: list[dict]) -> list[dict]:
    if not mentors:
        return []
    candidates = [_profile(m, "id", "name", "title", "company", "skills", "bio") for m in mentors]
    prompt = (
        "You are matching a mentee with mentors in a mentorship program.\n"
        f"Mentee: {orjson.dumps(_profile(mentee, 'title', 'company', 'goals', 'bio')).decode()}\n"
        f"Mentors: {orjson.dumps(candidates).decode()}\n"
        "Rank the best mentors for this mentee. Return mentorId, a score from 0 to 100 "
        "and a one sentence reason for each."
    )
    result = _ask(prompt, MATCH_SCHEMA, "match suggestions")
    if not isinstance(result, list):
        return []
    known = {m["id"] for m in mentors}
    return [s for s in result if isinstance(s, dict) and s.get("mentorId") in known]


def get_recommended_resources(user: dict) -> list[dict]:
    prompt = (
        "Recommend 3 learning resources for this mentorship program participant.\n"
        f"Profile: {orjson.dumps(_profile(user, 'role', 'title', 'company', 'skills', 'goals')).decode()}\n"
        f"Each resource type must be one of: {', '.join(RESOURCE_TYPES)}."
    )
    result = _ask(prompt, RESOURCE_SCHEMA, "resource recommendations")
    if not isinstance(result, list):
        return []
    return [r for r in result if isinstance(r, dict) and r.get("type") in RESOURCE_TYPES][:3]


def breakdown_goal(description: str) -> dict:
    prompt = (
        "Break this mentorship goal into 3 to 5 short actionable steps.\n"
        f"Goal: {description}"
    )
    result = _ask(prompt, BREAKDOWN_SCHEMA, "goal breakdown")
    if isinstance(result, dict) and result.get("steps"):
        return {"steps": [str(s) for s in result["steps"]]}
    return {"steps": list(FALLBACK_STEPS)}


def fallback_milestones(due_date: str, today: Optional[datetime.date] = None) -> list[dict]:
    start = today or datetime.date.today()
    try:
        end = datetime.date.fromisoformat(due_date)
    except (TypeError, ValueError):
        end = start + datetime.timedelta(days=30)
    span = (end - start).days

    def at(fraction: float) -> str:
        return (start + datetime.timedelta(days=int(span * fraction))).isoformat()

    steps = [
        ("Research and planning", "Gather information and plan the approach", at(0.25)),
        ("Initial implementation", "Start working on the main tasks", at(0.5)),
        ("Progress review and adjustments", "Review what is done and adjust the plan", at(0.75)),
        ("Final completion", "Finish the remaining work", end.isoformat()),
    ]
    return [
        {"title": title, "description": description, "suggestedDueDate": due}
        for title, description, due in steps
    ]


def suggest_milestones(
    title: str, description: str, due_date: str, today: Optional[datetime.date] = None
) -> list[dict]:
    today = today or datetime.date.today()
    prompt = (
        "Suggest 4 to 6 milestones for this goal, spread between today and the due date.\n"
        f"Today: {today.isoformat()}\nGoal: {title}\nDescription: {description}\nDue date: {due_date}\n"
        "Dates must use YYYY-MM-DD."
    )
    result = _ask(prompt, MILESTONE_SCHEMA, "milestone suggestions")
    if isinstance(result, list) and result:
        return [m for m in result if isinstance(m, dict) and m.get("title")][:6]
    return fallback_milestones(due_date, today)
