"""Direct and group chat messages.

A direct-message chat id is the two user ids sorted and joined with ``_``;
group chats use the group document id.
"""

from __future__ import annotations

import logging
from typing import Iterable
from typing import Optional

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

MESSAGES = "chatMessages"
GROUPS = "chatGroups"
DEFAULT_LIMIT = 50
MAX_LIMIT = 100
_TIMESTAMPS = ("createdAt", "timestamp")
GROUP_FIELDS = ("name", "avatar", "members")


def dm_chat_id(user_a: str, user_b: str) -> str:
    return "_".join(sorted((user_a, user_b)))


def _get_group(organization_id: str, group_id: str) -> dict:
    group = store.get_document(GROUPS, group_id)
    if group is None or group.get("organizationId") != organization_id:
        raise NotFound("Chat group not found")
    return group


def chat_members(session: Session, chat_id: str, chat_type: str) -> list[str]:
    if chat_type == "dm":
        members = chat_id.split("_")
        if len(members) != 2 or dm_chat_id(*members) != chat_id:
            raise BadRequest("Invalid direct message chat id")
        return members
    if chat_type == "group":
        return list(_get_group(session.organization_id, chat_id).get("members") or [])
    raise BadRequest("chatType must be 'dm' or 'group'")


def _require_member(session: Session, members: Iterable[str]) -> None:
    if session.user_id not in members and not session.is_admin:
        raise Forbidden("You are not part of this conversation")


def send_message(
    session: Session,
    chat_id: str,
    chat_type: str,
    text: str,
    type_: str = "text",
    file_url: Optional[str] = None,
    file_name: Optional[str] = None,
) -> dict:
    members = chat_members(session, chat_id, chat_type)
    if session.user_id not in members:
        raise Forbidden("You are not part of this conversation")
    if not (text or "").strip() and not file_url:
        raise BadRequest("Message text or file is required")

    now = utc_now().isoformat()
    data = {
        "organizationId": session.organization_id,
        "chatId": chat_id,
        "chatType": chat_type,
        "senderId": session.user_id,
        "text": text or "",
        "type": type_,
        "fileUrl": file_url,
        "fileName": file_name,
        "reactions": {},
        "readBy": [session.user_id],
        "timestamp": now,
        "createdAt": now,
    }
    message_id = store.create_document(MESSAGES, data)

    sender = participants.get_user(session.user_id) or {}
    preview = (text or file_name or "").strip()[:100]
    for user_id in members:
        if user_id != session.user_id:
            notify(
                session.organization_id,
                user_id,
                NotificationType.MESSAGE,
                f"New message from {sender.get('name') or 'someone'}",
                preview,
            )
    return {"id": message_id, **{k: v for k, v in data.items() if v is not None}}


def list_messages(
    session: Session, chat_id: str, chat_type: str = "dm", limit: int = DEFAULT_LIMIT
) -> list[dict]:
    _require_member(session, chat_members(session, chat_id, chat_type))
    newest = store.query_documents(
        MESSAGES,
        [("organizationId", "==", session.organization_id), ("chatId", "==", chat_id)],
        order_by="timestamp",
        descending=True,
        limit=max(1, min(limit, MAX_LIMIT)),
        timestamp_fields=_TIMESTAMPS,
    )
    return list(reversed(newest))


def get_message(session: Session, message_id: str) -> dict:
    message = store.get_document(MESSAGES, message_id, _TIMESTAMPS)
    if message is None or message.get("organizationId") != session.organization_id:
        raise NotFound("Message not found")
    return message


def toggle_reaction(message: dict, user_id: str, emoji: str) -> dict:
    """Return the message's reactions with `user_id` toggled on `emoji`."""
    reactions = {k: list(v) for k, v in (message.get("reactions") or {}).items()}
    users = reactions.get(emoji, [])
    if user_id in users:
        users.remove(user_id)
    else:
        users.append(user_id)
    if users:
        reactions[emoji] = users
    else:
        reactions.pop(emoji, None)
    return reactions


def react(session: Session, message_id: str, emoji: str) -> dict:
    if not emoji:
        raise BadRequest("Emoji is required")
    message = get_message(session, message_id)
    _require_member(session, chat_members(session, message["chatId"], message.get("chatType", "dm")))
    reactions = toggle_reaction(message, session.user_id, emoji)
    store.update_document(MESSAGES, message_id, {"reactions": reactions})
    return {**message, "reactions": reactions}


def mark_read(session: Session, message_id: str) -> dict:
    message = get_message(session, message_id)
    members = chat_members(session, message["chatId"], message.get("chatType", "dm"))
    # no admin bypass: only members leave read receipts
    if session.user_id not in members:
        raise Forbidden("You are not part of this conversation")
    read_by = list(message.get("readBy") or [])
    if session.user_id not in read_by:
        read_by.append(session.user_id)
        store.update_document(MESSAGES, message_id, {"readBy": read_by})
    return {**message, "readBy": read_by}


def delete_message(session: Session, message_id: str) -> None:
    message = get_message(session, message_id)
    if message.get("senderId") != session.user_id and not session.is_admin:
        raise Forbidden("Only the sender can delete this message")
    store.delete_document(MESSAGES, message_id)


def create_group(
    organization_id: str,
    name: str,
    members: Iterable[str],
    created_by: str,
    avatar: Optional[str] = None,
    group_id: Optional[str] = None,
) -> dict:
    if not (name or "").strip():
        raise BadRequest("Group name is required")
    member_ids = [created_by] + [m for m in dict.fromkeys(members) if m and m != created_by]
    data = {
        "organizationId": organization_id,
        "name": name.strip(),
        "avatar": avatar or participants.default_avatar(name),
        "type": "group",
        "members": member_ids,
        "createdBy": created_by,
        "createdAt": utc_now(),
    }
    group_id = store.create_document(GROUPS, data, doc_id=group_id)
    logger.info("Chat group %s created with %d members", group_id, len(member_ids))
    return store.get_document(GROUPS, group_id)


def list_groups(session: Session) -> list[dict]:
    groups = store.query_documents(
        GROUPS, [("organizationId", "==", session.organization_id)], order_by="createdAt"
    )
    if session.is_admin:
        return groups
    return [g for g in groups if session.user_id in (g.get("members") or [])]


def update_group(session: Session, group_id: str, updates: dict) -> dict:
    group = _get_group(session.organization_id, group_id)
    if group.get("createdBy") != session.user_id and not session.is_admin:
        raise Forbidden("Only the group creator can change it")
    unknown = set(updates) - set(GROUP_FIELDS)
    if unknown:
        raise BadRequest(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
    if "members" in updates:
        updates["members"] = list(dict.fromkeys(updates["members"] or []))
    if updates:
        store.update_document(GROUPS, group_id, updates)
    return {**group, **updates}
