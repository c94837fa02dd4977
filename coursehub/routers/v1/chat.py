"""Real-time course chat over a WebSocket.

Frames in both directions are JSON objects ``{"event": ..., "data": ...}``.
Client events: ``join_room`` (data: course id) and ``send_message``
(data: ``{courseId, senderId, senderName, content}``). Server events:
``room_joined``, ``receive_message`` and ``error``; errors only ever go back
to the connection that caused them.
"""
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError as SchemaError
from pymongo.errors import PyMongoError

from coursehub.core.deps import get_chat_coordinator, get_course_repository, get_user_repository
from coursehub.core.errors import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    PersistenceError,
    ValidationError,
)
from coursehub.database.course_repo import CourseRepo
from coursehub.schemas.context import UserContext
from coursehub.schemas.message import SendMessage
from coursehub.services.auth_service import AuthService
from coursehub.services.chat_service import ChatRoomCoordinator, event
from coursehub.services.course_service import CourseService

logger = logging.getLogger("coursehub.chat")

router = APIRouter()


class ChatConnection:
    """One accepted socket plus the identity it authenticated with."""

    def __init__(self, websocket: WebSocket, user: UserContext):
        self.websocket = websocket
        self.user = user

    @property
    def user_id(self) -> str:
        return self.user.user_id

    async def send_json(self, data: Any) -> None:
        await self.websocket.send_json(data)

    def __repr__(self) -> str:
        return f"<ChatConnection user={self.user.user_id}>"


async def _join_room(conn: ChatConnection, data: Any, course_repo: CourseRepo, chat: ChatRoomCoordinator):
    if not isinstance(data, str) or not data:
        raise ValidationError("join_room expects a course id")
    course = await CourseService.get_accessible_course(data, conn.user, course_repo)
    chat.join(conn, course.id)
    await conn.send_json(event("room_joined", {"courseId": course.id}))


async def _send_message(conn: ChatConnection, data: Any, course_repo: CourseRepo, chat: ChatRoomCoordinator):
    try:
        payload = SendMessage.model_validate(data)
    except SchemaError:
        raise ValidationError("send_message expects {courseId, content}")

    if payload.senderId is not None and payload.senderId != conn.user.user_id:
        raise AuthorizationError("Cannot send messages as another user")
    if not chat.is_joined(conn, payload.courseId):
        raise AuthorizationError("Join the course room before sending messages")
    # membership may have been revoked since the join
    await CourseService.get_accessible_course(payload.courseId, conn.user, course_repo)

    await chat.post_message(payload.courseId, conn.user.user_id, conn.user.name, payload.content)


HANDLERS = {
    "join_room": _join_room,
    "send_message": _send_message,
}


async def _dispatch(conn: ChatConnection, raw: Optional[str], course_repo: CourseRepo, chat: ChatRoomCoordinator):
    name = None
    try:
        if raw is None:
            raise ValidationError("Frames must be JSON text")
        try:
            frame = json.loads(raw)
        except ValueError:
            raise ValidationError("Frames must be JSON")
        if not isinstance(frame, dict):
            raise ValidationError("Frames must be JSON objects")

        name = frame.get("event")
        handler = HANDLERS.get(name) if isinstance(name, str) else None
        if handler is None:
            raise ValidationError(f"Unknown event: {name}")
        await handler(conn, frame.get("data"), course_repo, chat)
    except AppError as e:
        logger.info("Chat event %s from %s rejected: %s", name, conn.user.user_id, e.message)
        await conn.send_json(event("error", {"message": e.message, "event": name}))
    except PyMongoError:
        logger.exception("Chat event %s from %s failed on the database", name, conn.user.user_id)
        await conn.send_json(event("error", {"message": PersistenceError.default_message, "event": name}))


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, token: Optional[str] = None):
    user_repo = get_user_repository(websocket)
    course_repo = get_course_repository(websocket)
    chat = get_chat_coordinator(websocket)

    try:
        user = await AuthService.authenticate_token(token, user_repo)
    except AuthenticationError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    conn = ChatConnection(websocket, user)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # binary frames carry "bytes" and no "text"
            await _dispatch(conn, message.get("text"), course_repo, chat)
    except WebSocketDisconnect:
        pass
    finally:
        chat.leave(conn)
