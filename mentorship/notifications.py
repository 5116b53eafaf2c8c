from __future__ import annotations

import logging
from typing import Optional

from mentorship.adapters import firestore_adapter as store
from mentorship.core import utc_now
from mentorship.errors import Forbidden
from mentorship.errors import NotFound
from mentorship.models import NotificationType

logger = logging.getLogger(__name__)

COLLECTION = "notifications"
_TIMESTAMPS = ("timestamp",)


def notify(
    organization_id: str, user_id: str, type_: NotificationType, title: str, body: str
) -> Optional[str]:
    """Create a notification; failures are logged and swallowed."""
    try:
        return store.create_document(
            COLLECTION,
            {
                "organizationId": organization_id,
                "userId": user_id,
                "type": NotificationType(type_).value,
                "title": title,
                "body": body,
                "isRead": False,
                "timestamp": utc_now().isoformat(),
            },
        )
    except Exception:
        logger.exception("Error creating %s notification for user %s", type_, user_id)
        return None


def list_notifications(organization_id: str, user_id: str, unread_only: bool = False) -> list[dict]:
    filters = [("organizationId", "==", organization_id), ("userId", "==", user_id)]
    if unread_only:
        filters.append(("isRead", "==", False))
    return store.query_documents(
        COLLECTION, filters, order_by="timestamp", descending=True, timestamp_fields=_TIMESTAMPS
    )


def _owned(notification_id: str, user_id: str) -> dict:
    record = store.get_document(COLLECTION, notification_id, _TIMESTAMPS)
    if record is None:
        raise NotFound("Notification not found")
    if record.get("userId") != user_id:
        raise Forbidden("Not your notification")
    return record


def mark_read(notification_id: str, user_id: str) -> None:
    _owned(notification_id, user_id)
    store.update_document(COLLECTION, notification_id, {"isRead": True})


def mark_all_read(organization_id: str, user_id: str) -> int:
    unread = list_notifications(organization_id, user_id, unread_only=True)
    for record in unread:
        store.update_document(COLLECTION, record["id"], {"isRead": True})
    return len(unread)


def delete_notification(notification_id: str, user_id: str) -> None:
    _owned(notification_id, user_id)
    store.delete_document(COLLECTION, notification_id)


def unread_count(organization_id: str, user_id: str) -> int:
    return len(list_notifications(organization_id, user_id, unread_only=True))
