from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from coursehub.schemas.message import Message


class MessageRepo(ABC):
    @abstractmethod
    async def create(self, message: Message) -> str:
        raise NotImplementedError

    @abstractmethod
    async def find_for_course(self, course_id: str) -> Sequence[Message]:
        """All messages of a course, oldest first."""
        raise NotImplementedError

    @abstractmethod
    async def delete_for_course(self, course_id: str) -> int:
        raise NotImplementedError
