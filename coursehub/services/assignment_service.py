"""Assignment workflow.

Status moves Pending -> Submitted -> Graded. Submitting again while Submitted
refreshes the caller's entry in place; once Graded the assignment is locked
for learners and no edit can move it back.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Sequence, Tuple

from bson import ObjectId

from coursehub.core.errors import ConcurrentUpdateError, InvalidTransitionError, NotFoundError, ValidationError
from coursehub.database.assignment_repo import AssignmentRepo
from coursehub.database.course_repo import CourseRepo
from coursehub.schemas.assignment import (
    Assignment,
    AssignmentCreate,
    AssignmentStatus,
    AssignmentUpdate,
    Submission,
    SubmissionCreate,
)
from coursehub.schemas.context import UserContext
from coursehub.schemas.course import Course
from coursehub.services import access_policy as policy

ALLOWED_TRANSITIONS = {
    AssignmentStatus.PENDING: {AssignmentStatus.PENDING, AssignmentStatus.SUBMITTED, AssignmentStatus.GRADED},
    AssignmentStatus.SUBMITTED: {AssignmentStatus.SUBMITTED, AssignmentStatus.GRADED},
    AssignmentStatus.GRADED: {AssignmentStatus.GRADED},
}


def create_assignment_id() -> str:
    return str(ObjectId())


def ensure_transition(current: AssignmentStatus, target: AssignmentStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(f"Cannot move assignment from {current.value} to {target.value}")


def upsert_submission(submissions: Sequence[Submission], submission: Submission) -> list:
    """Return a new list where ``submission`` replaces the entry of the same user, or is appended."""
    result = list(submissions)
    for i, existing in enumerate(result):
        if existing.userId == submission.userId:
            result[i] = submission
            return result
    result.append(submission)
    return result


def day_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


async def _load(
    assignment_id: str, repo: AssignmentRepo, course_repo: CourseRepo
) -> Tuple[Assignment, Course]:
    assignment = await repo.find_one(assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")
    course = await course_repo.find_one(assignment.courseId)
    if course is None:
        # orphan left behind by a course delete in progress
        raise NotFoundError("Assignment not found")
    return assignment, course


class AssignmentService:

    @staticmethod
    async def create_assignment(
        data: AssignmentCreate,
        user: UserContext,
        repo: AssignmentRepo,
        course_repo: CourseRepo,
    ) -> Assignment:
        course = await course_repo.find_one(data.courseId)
        if course is None:
            raise NotFoundError("Course not found")
        policy.ensure(
            policy.can_manage_course(user, course),
            "Only course owner or instructor can create assignments",
        )

        assignment = Assignment(
            id=create_assignment_id(),
            createdAt=datetime.now(timezone.utc),
            status=AssignmentStatus.PENDING,
            submissions=[],
            **data.model_dump(),
        )
        await repo.create(assignment)
        return assignment

    @staticmethod
    async def list_assignments(
        user: UserContext,
        repo: AssignmentRepo,
        course_repo: CourseRepo,
        course_id: Optional[str] = None,
        status: Optional[AssignmentStatus] = None,
        due_date: Optional[date] = None,
    ) -> Sequence[Assignment]:
        courses = await course_repo.find_accessible(user.user_id)
        course_ids = [c.id for c in courses]
        if course_id is not None:
            # filtering on a course the user cannot see yields nothing, not an error
            course_ids = [c for c in course_ids if c == course_id]
        if not course_ids:
            return []

        due_from = due_to = None
        if due_date is not None:
            due_from, due_to = day_window(due_date)
        return await repo.find_for_courses(course_ids, status=status, due_from=due_from, due_to=due_to)

    @staticmethod
    async def get_assignment(
        assignment_id: str, user: UserContext, repo: AssignmentRepo, course_repo: CourseRepo
    ) -> Assignment:
        assignment, course = await _load(assignment_id, repo, course_repo)
        policy.ensure(policy.can_access_course(user, course))
        return assignment

    @staticmethod
    async def update_assignment(
        assignment_id: str,
        data: AssignmentUpdate,
        user: UserContext,
        repo: AssignmentRepo,
        course_repo: CourseRepo,
    ) -> Assignment:
        assignment, course = await _load(assignment_id, repo, course_repo)
        policy.ensure(policy.can_manage_assignment(user, assignment, course))

        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            raise ValidationError("Nothing to update")
        if "status" in fields:
            ensure_transition(assignment.status, fields["status"])

        updated = await repo.update_fields(assignment_id, fields)
        if updated is None:
            raise NotFoundError("Assignment not found")
        return updated

    @staticmethod
    async def delete_assignment(
        assignment_id: str, user: UserContext, repo: AssignmentRepo, course_repo: CourseRepo
    ) -> None:
        assignment, course = await _load(assignment_id, repo, course_repo)
        policy.ensure(policy.can_manage_assignment(user, assignment, course))
        if not await repo.delete(assignment_id):
            raise NotFoundError("Assignment not found")

    @staticmethod
    async def submit(
        assignment_id: str,
        data: SubmissionCreate,
        user: UserContext,
        repo: AssignmentRepo,
        course_repo: CourseRepo,
    ) -> Assignment:
        if not data.fileUrl or not data.fileUrl.strip():
            raise ValidationError("File URL is required")

        assignment, course = await _load(assignment_id, repo, course_repo)
        policy.ensure(policy.can_submit(user, assignment, course), "You are not enrolled in this course")
        ensure_transition(assignment.status, AssignmentStatus.SUBMITTED)

        submission = Submission(
            userId=user.user_id,
            fileUrl=data.fileUrl.strip(),
            comment=data.comment,
            submittedAt=datetime.now(timezone.utc),
        )
        updated = await repo.upsert_submission(assignment_id, submission)
        if updated is None:
            # graded or deleted between the read above and the write
            current = await repo.find_one(assignment_id)
            if current is None:
                raise NotFoundError("Assignment not found")
            ensure_transition(current.status, AssignmentStatus.SUBMITTED)
            # still open, so the write lost a race rather than hitting a grade
            raise ConcurrentUpdateError("Submission collided with another update, please retry")
        return updated

    @staticmethod
    async def grade(
        assignment_id: str, user: UserContext, repo: AssignmentRepo, course_repo: CourseRepo
    ) -> Assignment:
        assignment, course = await _load(assignment_id, repo, course_repo)
        policy.ensure(policy.can_manage_assignment(user, assignment, course))

        updated = await repo.set_status(assignment_id, AssignmentStatus.GRADED)
        if updated is None:
            raise NotFoundError("Assignment not found")
        return updated
