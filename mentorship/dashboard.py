from __future__ import annotations

import datetime
from collections import Counter
from typing import Optional

from mentorship import goals
from mentorship import matching
from mentorship import notifications
from mentorship import organizations
from mentorship import participants
from mentorship import ratings
from mentorship import scheduling
from mentorship.adapters import firestore_adapter as store
from mentorship.auth import Session
from mentorship.core import parse_timestamp
from mentorship.core import today_iso
from mentorship.core import utc_now
from mentorship.models import GoalStatus
from mentorship.models import MatchStatus
from mentorship.models import Role
from mentorship.models import normalize_role

RECENT_USER_DAYS = 30


def _by_status(records: list[dict], status) -> int:
    return sum(1 for r in records if r.get("status") == status.value)


def organization_stats(organization_id: str) -> dict:
    users = participants.list_participants(organization_id)
    matches = matching.list_matches(organization_id)
    org_goals = store.query_documents(goals.COLLECTION, [("organizationId", "==", organization_id)])
    org_ratings = ratings.list_ratings(organization_id)
    roles = Counter(normalize_role(u.get("role")) for u in users)

    return {
        "users": {
            "total": len(users),
            "admins": roles[Role.ADMIN],
            "mentors": roles[Role.MENTOR],
            "mentees": roles[Role.MENTEE],
        },
        "activeMatches": _by_status(matches, MatchStatus.ACTIVE),
        "completedMatches": _by_status(matches, MatchStatus.COMPLETED),
        "unmatchedMentees": len(matching.unmatched_mentees(users, matches)),
        "goals": {status.value: _by_status(org_goals, status) for status in GoalStatus},
        "pendingRatings": sum(1 for r in org_ratings if not r.get("isApproved")),
        "averageRating": ratings.average_score(org_ratings),
        "upcomingEvents": len(scheduling.list_events(organization_id, start_date=today_iso())),
    }


def platform_stats(now: Optional[datetime.datetime] = None) -> dict:
    now = now or utc_now()
    users = participants.list_all_users()
    matches = store.query_documents(matching.COLLECTION)
    all_goals = store.query_documents(goals.COLLECTION)
    all_ratings = store.query_documents(ratings.COLLECTION)
    approved = [r for r in all_ratings if r.get("isApproved")]

    cutoff = now - datetime.timedelta(days=RECENT_USER_DAYS)
    recent = 0
    for user in users:
        created = parse_timestamp(user.get("createdAt"))
        if created is not None and created >= cutoff:
            recent += 1

    return {
        "totalOrganizations": len(organizations.list_organizations()),
        "totalUsers": len(users),
        "activeMatches": _by_status(matches, MatchStatus.ACTIVE),
        "completedMatches": _by_status(matches, MatchStatus.COMPLETED),
        "totalGoals": len(all_goals),
        "completedGoals": _by_status(all_goals, GoalStatus.COMPLETED),
        "inProgressGoals": _by_status(all_goals, GoalStatus.IN_PROGRESS),
        "totalRatings": len(all_ratings),
        "approvedRatings": len(approved),
        "avgRating": ratings.average_score(approved) or 0,
        "recentUsers": recent,
    }


def participant_summary(session: Session) -> dict:
    organization_id = session.organization_id
    return {
        "matches": matching.matches_for_user(organization_id, session.user_id),
        "goals": goals.list_goals(session, session.user_id),
        "upcomingEvents": scheduling.list_events_for_user(
            organization_id, session.user_id, start_date=today_iso()
        ),
        "unreadNotifications": notifications.unread_count(organization_id, session.user_id),
    }


def dashboard_for(session: Session) -> dict:
    if session.is_platform_admin:
        return {"view": "platform", "stats": platform_stats()}
    if session.is_admin:
        return {"view": "organization", "stats": organization_stats(session.organization_id)}
    return {"view": "participant", **participant_summary(session)}
