from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from coursehub.schemas.resource import Resource


class ResourceRepo(ABC):
    @abstractmethod
    async def create(self, resource: Resource) -> str:
        raise NotImplementedError

    @abstractmethod
    async def find_for_course(self, course_id: str) -> Sequence[Resource]:
        """Resources of a course, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def delete_for_course(self, course_id: str) -> int:
        raise NotImplementedError
