"""Read models with the names clients display.

Courses and assignments store user and course ids only; these helpers resolve
them in one batch per request. A reference whose target is gone resolves to
``None`` (or is left out of ``memberDetails``) instead of failing the read.
"""
from typing import Dict, Iterable, List, Sequence

from coursehub.database.course_repo import CourseRepo
from coursehub.database.user_repo import UserRepo
from coursehub.schemas.assignment import Assignment, AssignmentView, SubmissionView
from coursehub.schemas.course import Course, CourseView
from coursehub.schemas.summary import CourseSummary, UserSummary


async def _users_by_id(user_repo: UserRepo, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
    ids = set(user_ids)
    if not ids:
        return {}
    users = await user_repo.find_many(ids)
    return {u.id: UserSummary(id=u.id, name=u.name, email=u.email) for u in users}


async def _courses_by_id(course_repo: CourseRepo, course_ids: Iterable[str]) -> Dict[str, CourseSummary]:
    found = {}
    for course_id in set(course_ids):
        course = await course_repo.find_one(course_id)
        if course is not None:
            found[course_id] = CourseSummary(id=course.id, title=course.title, code=course.code)
    return found


async def assignment_views(
    assignments: Sequence[Assignment], course_repo: CourseRepo, user_repo: UserRepo
) -> List[AssignmentView]:
    courses = await _courses_by_id(course_repo, (a.courseId for a in assignments))
    users = await _users_by_id(user_repo, (s.userId for a in assignments for s in a.submissions))
    return [
        AssignmentView(
            **a.model_dump(exclude={"submissions"}),
            course=courses.get(a.courseId),
            submissions=[SubmissionView(**s.model_dump(), user=users.get(s.userId)) for s in a.submissions],
        )
        for a in assignments
    ]


async def assignment_view(assignment: Assignment, course_repo: CourseRepo, user_repo: UserRepo) -> AssignmentView:
    return (await assignment_views([assignment], course_repo, user_repo))[0]


async def course_views(courses: Sequence[Course], user_repo: UserRepo) -> List[CourseView]:
    users = await _users_by_id(user_repo, (uid for c in courses for uid in [c.ownerId, *c.members]))
    return [
        CourseView(
            **c.model_dump(),
            owner=users.get(c.ownerId),
            memberDetails=[users[m] for m in c.members if m in users],
        )
        for c in courses
    ]
