"""Course chat rooms.

``ChatRoomCoordinator`` is the only owner of the room table: which live
channels have joined which course. It persists every message before fanning it
out to the room, sender included, so clients render what the server stored and
in the order it was stored. Membership lives in this process only.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set

from bson import ObjectId
from pymongo.errors import PyMongoError

from coursehub.core.errors import PersistenceError, ValidationError
from coursehub.database.message_repo import MessageRepo
from coursehub.database.user_repo import UserRepo
from coursehub.schemas.message import Message, MessageOut, MessageSender

logger = logging.getLogger("coursehub.chat")

RECEIVE_MESSAGE = "receive_message"

# seconds a peer may take to accept one frame before it is dropped
SEND_TIMEOUT = 5.0


class Channel(Protocol):
    user_id: str

    async def send_json(self, data: Any) -> None: ...


def event(name: str, data: Any) -> dict:
    return {"event": name, "data": data}


class ChatRoomCoordinator:
    def __init__(self, message_repo: MessageRepo, user_repo: UserRepo, send_timeout: float = SEND_TIMEOUT):
        self.message_repo = message_repo
        self.user_repo = user_repo
        self.send_timeout = send_timeout
        self._rooms: Dict[str, Set[Channel]] = defaultdict(set)
        self._joined: Dict[Channel, Set[str]] = defaultdict(set)
        self._locks: Dict[str, asyncio.Lock] = {}
        # posts holding or waiting on each room lock
        self._posting: Dict[str, int] = defaultdict(int)

    def join(self, channel: Channel, course_id: str) -> None:
        self._rooms[course_id].add(channel)
        self._joined[channel].add(course_id)

    def leave(self, channel: Channel) -> None:
        """Remove a channel from every room it joined."""
        for course_id in self._joined.pop(channel, set()):
            self._discard(channel, course_id)

    def leave_room(self, course_id: str, user_id: Optional[str] = None) -> int:
        """Remove the channels of ``user_id`` from one room, or every channel when no user is given.

        Used when a member leaves a course or the course is deleted. Returns the
        number of channels removed.
        """
        channels = [
            ch for ch in self.members_of(course_id)
            if user_id is None or ch.user_id == user_id
        ]
        for channel in channels:
            joined = self._joined.get(channel)
            if joined is not None:
                joined.discard(course_id)
                if not joined:
                    del self._joined[channel]
            self._discard(channel, course_id)
        if channels:
            logger.info("Removed %d chat channel(s) from course %s", len(channels), course_id)
        return len(channels)

    def _discard(self, channel: Channel, course_id: str) -> None:
        members = self._rooms.get(course_id)
        if members is None:
            return
        members.discard(channel)
        if not members:
            del self._rooms[course_id]
            self._drop_lock(course_id)

    def _drop_lock(self, course_id: str) -> None:
        if course_id in self._rooms or self._posting.get(course_id):
            return
        self._locks.pop(course_id, None)
        self._posting.pop(course_id, None)

    def members_of(self, course_id: str) -> List[Channel]:
        return list(self._rooms.get(course_id, ()))

    def rooms_of(self, channel: Channel) -> Set[str]:
        return set(self._joined.get(channel, ()))

    def is_joined(self, channel: Channel, course_id: str) -> bool:
        return channel in self._rooms.get(course_id, ())

    async def post_message(self, course_id: str, sender_id: str, sender_name: str, content: str) -> MessageOut:
        """Persist a message and deliver it to every channel in the course room.

        Raises ValidationError for blank content and PersistenceError when the
        store rejects the write; nothing is broadcast in either case. A peer
        that does not take the frame within ``send_timeout`` is dropped.
        """
        if content is None or not content.strip():
            raise ValidationError("Message content cannot be empty")

        self._posting[course_id] += 1
        try:
            async with self._locks.setdefault(course_id, asyncio.Lock()):
                message = Message(
                    id=str(ObjectId()),
                    courseId=course_id,
                    senderId=sender_id,
                    content=content,
                    createdAt=datetime.now(timezone.utc),
                )
                try:
                    await self.message_repo.create(message)
                except (PersistenceError, PyMongoError) as exc:
                    logger.exception("Saving message for course %s failed", course_id)
                    raise PersistenceError("Message could not be delivered") from exc

                out = MessageOut(
                    id=message.id,
                    content=message.content,
                    sender=MessageSender(id=sender_id, name=sender_name),
                    createdAt=message.createdAt,
                )
                await self._broadcast(course_id, event(RECEIVE_MESSAGE, out.model_dump(by_alias=True, mode="json")))
                return out
        finally:
            self._posting[course_id] -= 1
            self._drop_lock(course_id)

    async def _broadcast(self, course_id: str, payload: dict) -> None:
        channels = self.members_of(course_id)
        if not channels:
            return
        results = await asyncio.gather(
            *(asyncio.wait_for(channel.send_json(payload), self.send_timeout) for channel in channels),
            return_exceptions=True,
        )
        for channel, r in zip(channels, results):
            if isinstance(r, asyncio.TimeoutError):
                logger.warning("Dropping channel %r from course %s after a send timed out", channel, course_id)
                self.leave(channel)
            elif isinstance(r, Exception):
                logger.warning("Dropping channel from course %s after failed send", course_id, exc_info=r)
                self.leave(channel)

    async def history(self, course_id: str) -> Sequence[MessageOut]:
        messages = await self.message_repo.find_for_course(course_id)
        senders = await self.user_repo.find_many({m.senderId for m in messages})
        names = {u.id: u.name for u in senders}
        return [
            MessageOut(
                id=m.id,
                content=m.content,
                sender=MessageSender(id=m.senderId, name=names.get(m.senderId)),
                createdAt=m.createdAt,
            )
            for m in messages
        ]
