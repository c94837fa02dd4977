from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from coursehub.schemas.course import Course


class CourseRepo(ABC):
    @abstractmethod
    async def create(self, course: Course) -> str:
        """Insert a course. Raises ConflictError if its code is taken."""
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, course_id: str) -> Optional[Course]:
        raise NotImplementedError

    @abstractmethod
    async def find_by_code(self, code: str) -> Optional[Course]:
        """Lookup by normalised (upper-case) code."""
        raise NotImplementedError

    @abstractmethod
    async def find_accessible(self, user_id: str) -> Sequence[Course]:
        """Courses the user owns or is a member of, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def add_member(self, course_id: str, user_id: str) -> bool:
        """Add a member. False if the user was already listed."""
        raise NotImplementedError

    @abstractmethod
    async def remove_member(self, course_id: str, user_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def update_fields(self, course_id: str, fields: dict) -> Optional[Course]:
        """Patch a course. Raises ConflictError if a new code is taken."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, course_id: str) -> bool:
        raise NotImplementedError
