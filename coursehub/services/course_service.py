import logging
from datetime import datetime, timezone
from typing import Sequence

from bson import ObjectId

from coursehub.core.errors import ConflictError, NotFoundError, ValidationError
from coursehub.database.assignment_repo import AssignmentRepo
from coursehub.database.course_repo import CourseRepo
from coursehub.database.message_repo import MessageRepo
from coursehub.database.resource_repo import ResourceRepo
from coursehub.database.user_repo import UserRepo
from coursehub.schemas.context import UserContext
from coursehub.schemas.course import Course, CourseCreate, CourseDetail, CourseUpdate
from coursehub.schemas.resource import Resource, ResourceCreate
from coursehub.services import access_policy as policy
from coursehub.services.views import course_views

logger = logging.getLogger("coursehub.courses")


async def _get_course(course_id: str, repo: CourseRepo) -> Course:
    course = await repo.find_one(course_id)
    if course is None:
        raise NotFoundError("Course not found")
    return course


class CourseService:

    @staticmethod
    async def create_course(data: CourseCreate, user: UserContext, repo: CourseRepo) -> Course:
        if await repo.find_by_code(data.code):
            raise ConflictError("Course code already exists")

        course = Course(
            id=str(ObjectId()),
            title=data.title.strip(),
            code=data.code,
            description=data.description,
            ownerId=user.user_id,
            members=[user.user_id],
            createdAt=datetime.now(timezone.utc),
        )
        await repo.create(course)
        return course

    @staticmethod
    async def list_courses(user: UserContext, repo: CourseRepo) -> Sequence[Course]:
        return await repo.find_accessible(user.user_id)

    @staticmethod
    async def get_accessible_course(course_id: str, user: UserContext, repo: CourseRepo) -> Course:
        course = await _get_course(course_id, repo)
        policy.ensure(policy.can_access_course(user, course))
        return course

    @staticmethod
    async def get_course_detail(
        course_id: str,
        user: UserContext,
        repo: CourseRepo,
        assignment_repo: AssignmentRepo,
        user_repo: UserRepo,
    ) -> CourseDetail:
        course = await CourseService.get_accessible_course(course_id, user, repo)
        assignments = await assignment_repo.find_for_courses([course.id])
        (view,) = await course_views([course], user_repo)
        return CourseDetail(course=view, assignments=list(assignments))

    @staticmethod
    async def update_course(course_id: str, data: CourseUpdate, user: UserContext, repo: CourseRepo) -> Course:
        course = await _get_course(course_id, repo)
        policy.ensure(policy.can_manage_course(user, course))

        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            raise ValidationError("Nothing to update")
        if "code" in fields and fields["code"] != course.code:
            if await repo.find_by_code(fields["code"]):
                raise ConflictError("Course code already exists")

        updated = await repo.update_fields(course_id, fields)
        if updated is None:
            raise NotFoundError("Course not found")
        return updated

    @staticmethod
    async def delete_course(
        course_id: str,
        user: UserContext,
        repo: CourseRepo,
        assignment_repo: AssignmentRepo,
        resource_repo: ResourceRepo,
        message_repo: MessageRepo,
    ) -> None:
        course = await _get_course(course_id, repo)
        policy.ensure(policy.can_manage_course(user, course))

        # the course goes first so nothing can reach the children mid-cascade
        if not await repo.delete(course_id):
            raise NotFoundError("Course not found")
        assignments = await assignment_repo.delete_for_course(course_id)
        resources = await resource_repo.delete_for_course(course_id)
        messages = await message_repo.delete_for_course(course_id)
        logger.info(
            "Deleted course %s (%d assignments, %d resources, %d messages)",
            course_id, assignments, resources, messages,
        )

    @staticmethod
    async def enroll(course_id: str, user: UserContext, repo: CourseRepo) -> Course:
        course = await _get_course(course_id, repo)
        if policy.can_access_course(user, course):
            raise ConflictError("Already enrolled")
        if not await repo.add_member(course_id, user.user_id):
            # lost a race with another enroll of the same user, or the course vanished
            await _get_course(course_id, repo)
            raise ConflictError("Already enrolled")
        return await _get_course(course_id, repo)

    @staticmethod
    async def leave(course_id: str, user: UserContext, repo: CourseRepo) -> None:
        course = await _get_course(course_id, repo)
        if policy.is_owner(user, course):
            raise ValidationError("Owner cannot leave")
        await repo.remove_member(course_id, user.user_id)

    @staticmethod
    async def add_resource(
        course_id: str, data: ResourceCreate, user: UserContext, repo: CourseRepo, resource_repo: ResourceRepo
    ) -> Resource:
        course = await _get_course(course_id, repo)
        policy.ensure(policy.can_manage_course(user, course))

        resource = Resource(
            id=str(ObjectId()),
            courseId=course.id,
            uploadedBy=user.user_id,
            createdAt=datetime.now(timezone.utc),
            **data.model_dump(),
        )
        await resource_repo.create(resource)
        return resource

    @staticmethod
    async def list_resources(
        course_id: str, user: UserContext, repo: CourseRepo, resource_repo: ResourceRepo
    ) -> Sequence[Resource]:
        course = await CourseService.get_accessible_course(course_id, user, repo)
        return await resource_repo.find_for_course(course.id)
