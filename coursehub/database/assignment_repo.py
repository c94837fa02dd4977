from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional, Sequence

from coursehub.schemas.assignment import Assignment, AssignmentStatus, Submission


class AssignmentRepo(ABC):
    @abstractmethod
    async def create(self, assignment: Assignment) -> str:
        """Insert a fully built assignment and return its id."""
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, assignment_id: str) -> Optional[Assignment]:
        """Return the assignment with that id, or None."""
        raise NotImplementedError

    @abstractmethod
    async def find_for_courses(
        self,
        course_ids: Iterable[str],
        status: Optional[AssignmentStatus] = None,
        due_from: Optional[datetime] = None,
        due_to: Optional[datetime] = None,
    ) -> Sequence[Assignment]:
        """Assignments belonging to any of the given courses, sorted by due date.
        ``due_from`` is inclusive, ``due_to`` exclusive."""
        raise NotImplementedError

    @abstractmethod
    async def update_fields(self, assignment_id: str, fields: dict) -> Optional[Assignment]:
        """Apply a field patch and return the updated assignment, or None if it does not exist."""
        raise NotImplementedError

    @abstractmethod
    async def upsert_submission(self, assignment_id: str, submission: Submission) -> Optional[Assignment]:
        """Atomically replace the caller's submission (or append it) and mark the
        assignment Submitted. Does nothing and returns None when the assignment
        is missing or already Graded. Raises ConcurrentUpdateError when the
        write keeps losing to concurrent updates of an open assignment."""
        raise NotImplementedError

    @abstractmethod
    async def set_status(self, assignment_id: str, status: AssignmentStatus) -> Optional[Assignment]:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, assignment_id: str) -> bool:
        """Delete one assignment. True if something was deleted."""
        raise NotImplementedError

    @abstractmethod
    async def delete_for_course(self, course_id: str) -> int:
        """Delete every assignment of a course, returning how many went."""
        raise NotImplementedError
