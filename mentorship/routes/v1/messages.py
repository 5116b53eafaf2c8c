from fastapi import APIRouter
from fastapi import Depends
from fastapi import Response

from mentorship import messaging
from mentorship.auth import Session
from mentorship.auth import current_session
from mentorship.schemas import GroupCreate
from mentorship.schemas import GroupUpdate
from mentorship.schemas import MessageCreate
from mentorship.schemas import Reaction

router = APIRouter(prefix="/api/v1", tags=["messaging"])


@router.get("/chats/{chat_id}/messages")
def list_messages(
    chat_id: str,
    chat_type: str = "dm",
    limit: int = messaging.DEFAULT_LIMIT,
    session: Session = Depends(current_session),
):
    return messaging.list_messages(session, chat_id, chat_type, limit)


@router.post("/chats/{chat_id}/messages", status_code=201)
def send_message(chat_id: str, body: MessageCreate, session: Session = Depends(current_session)):
    return messaging.send_message(
        session, chat_id, body.chatType, body.text, body.type, body.fileUrl, body.fileName
    )


@router.post("/messages/{message_id}/reactions")
def react(message_id: str, body: Reaction, session: Session = Depends(current_session)):
    return messaging.react(session, message_id, body.emoji)


@router.post("/messages/{message_id}/read")
def mark_read(message_id: str, session: Session = Depends(current_session)):
    return messaging.mark_read(session, message_id)


@router.delete("/messages/{message_id}", status_code=204, response_class=Response)
def delete_message(message_id: str, session: Session = Depends(current_session)):
    messaging.delete_message(session, message_id)
    return Response(status_code=204)


@router.get("/chat-groups")
def list_groups(session: Session = Depends(current_session)):
    return messaging.list_groups(session)


@router.post("/chat-groups", status_code=201)
def create_group(body: GroupCreate, session: Session = Depends(current_session)):
    return messaging.create_group(
        session.organization_id, body.name, body.members, session.user_id, body.avatar, body.id
    )


@router.patch("/chat-groups/{group_id}")
def update_group(group_id: str, body: GroupUpdate, session: Session = Depends(current_session)):
    return messaging.update_group(session, group_id, body.model_dump(exclude_unset=True))


__all__ = ["router"]
