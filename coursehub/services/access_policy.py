"""Who may read or change a course and its assignments.

Every check in the service layer goes through these predicates. They never
raise for a denial, only for references that are missing or inconsistent;
callers turn ``False`` into an ``AuthorizationError`` (see ``ensure``).
"""
from typing import Optional

from coursehub.core.errors import AuthorizationError
from coursehub.schemas.assignment import Assignment
from coursehub.schemas.context import UserContext
from coursehub.schemas.course import Course
from coursehub.schemas.user import Role


def _require(user: Optional[UserContext], course: Optional[Course]) -> None:
    if user is None:
        raise ValueError("user is required")
    if course is None:
        raise ValueError("course is required")


def _course_of(assignment: Optional[Assignment], course: Optional[Course]) -> Course:
    if assignment is None:
        raise ValueError("assignment is required")
    if course is None or course.id != assignment.courseId:
        raise ValueError(f"course {assignment.courseId} of assignment {assignment.id} not supplied")
    return course


def is_owner(user: UserContext, course: Course) -> bool:
    return course.ownerId == user.user_id


def can_access_course(user: UserContext, course: Course) -> bool:
    _require(user, course)
    return is_owner(user, course) or user.user_id in course.members


def can_manage_course(user: UserContext, course: Course) -> bool:
    _require(user, course)
    return is_owner(user, course) or user.role == Role.INSTRUCTOR


def can_manage_assignment(user: UserContext, assignment: Assignment, course: Course) -> bool:
    return can_manage_course(user, _course_of(assignment, course))


def can_submit(user: UserContext, assignment: Assignment, course: Course) -> bool:
    return can_access_course(user, _course_of(assignment, course))


def ensure(allowed: bool, message: str = "Access denied") -> None:
    if not allowed:
        raise AuthorizationError(message)
