from fastapi import APIRouter
from fastapi import Depends
from fastapi import Response

from mentorship import notifications
from mentorship.auth import Session
from mentorship.auth import current_session

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("")
def list_notifications(unread_only: bool = False, session: Session = Depends(current_session)):
    return notifications.list_notifications(session.organization_id, session.user_id, unread_only)


@router.post("/read-all")
def mark_all_read(session: Session = Depends(current_session)):
    return {"updated": notifications.mark_all_read(session.organization_id, session.user_id)}


@router.post("/{notification_id}/read")
def mark_read(notification_id: str, session: Session = Depends(current_session)):
    notifications.mark_read(notification_id, session.user_id)
    return {"id": notification_id, "isRead": True}


@router.delete("/{notification_id}", status_code=204, response_class=Response)
def delete_notification(notification_id: str, session: Session = Depends(current_session)):
    notifications.delete_notification(notification_id, session.user_id)
    return Response(status_code=204)


__all__ = ["router"]
