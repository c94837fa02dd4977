from typing import Annotated

from fastapi import APIRouter, Depends, status

from coursehub.core.deps import (
    get_assignment_repository,
    get_chat_coordinator,
    get_course_repository,
    get_message_repository,
    get_resource_repository,
    get_user_repository,
)
from coursehub.database.assignment_repo import AssignmentRepo
from coursehub.database.course_repo import CourseRepo
from coursehub.database.message_repo import MessageRepo
from coursehub.database.resource_repo import ResourceRepo
from coursehub.database.user_repo import UserRepo
from coursehub.schemas.context import UserContext
from coursehub.schemas.course import Course, CourseCreate, CourseDetail, CourseUpdate, CourseView
from coursehub.schemas.message import MessageOut
from coursehub.schemas.resource import Resource, ResourceCreate
from coursehub.services.auth_service import AuthService
from coursehub.services.chat_service import ChatRoomCoordinator
from coursehub.services.course_service import CourseService
from coursehub.services.views import course_views

router = APIRouter()

RepoDep = Annotated[CourseRepo, Depends(get_course_repository)]
AssignmentRepoDep = Annotated[AssignmentRepo, Depends(get_assignment_repository)]
ResourceRepoDep = Annotated[ResourceRepo, Depends(get_resource_repository)]
MessageRepoDep = Annotated[MessageRepo, Depends(get_message_repository)]
UserRepoDep = Annotated[UserRepo, Depends(get_user_repository)]
ChatDep = Annotated[ChatRoomCoordinator, Depends(get_chat_coordinator)]
UserDep = Annotated[UserContext, Depends(AuthService.get_current_user)]


@router.post("/courses", response_model=Course, status_code=status.HTTP_201_CREATED)
async def create_course_endpoint(data: CourseCreate, user: UserDep, repo: RepoDep):
    return await CourseService.create_course(data, user, repo)


@router.get("/courses", response_model=list[CourseView])
async def list_courses_endpoint(user: UserDep, repo: RepoDep, user_repo: UserRepoDep):
    return await course_views(await CourseService.list_courses(user, repo), user_repo)


@router.get("/courses/{course_id}", response_model=CourseDetail)
async def get_course_endpoint(
    course_id: str, user: UserDep, repo: RepoDep, assignment_repo: AssignmentRepoDep, user_repo: UserRepoDep
):
    return await CourseService.get_course_detail(course_id, user, repo, assignment_repo, user_repo)


@router.put("/courses/{course_id}", response_model=Course)
async def update_course_endpoint(course_id: str, data: CourseUpdate, user: UserDep, repo: RepoDep):
    return await CourseService.update_course(course_id, data, user, repo)


@router.delete("/courses/{course_id}")
async def delete_course_endpoint(
    course_id: str,
    user: UserDep,
    repo: RepoDep,
    assignment_repo: AssignmentRepoDep,
    resource_repo: ResourceRepoDep,
    message_repo: MessageRepoDep,
    chat: ChatDep,
):
    await CourseService.delete_course(course_id, user, repo, assignment_repo, resource_repo, message_repo)
    chat.leave_room(course_id)
    return {"message": "Course deleted"}


@router.post("/courses/{course_id}/enroll", response_model=Course)
async def enroll_endpoint(course_id: str, user: UserDep, repo: RepoDep):
    return await CourseService.enroll(course_id, user, repo)


@router.post("/courses/{course_id}/leave")
async def leave_endpoint(course_id: str, user: UserDep, repo: RepoDep, chat: ChatDep):
    await CourseService.leave(course_id, user, repo)
    chat.leave_room(course_id, user.user_id)
    return {"message": "Left course"}


@router.post("/courses/{course_id}/resources", response_model=Resource, status_code=status.HTTP_201_CREATED)
async def add_resource_endpoint(
    course_id: str, data: ResourceCreate, user: UserDep, repo: RepoDep, resource_repo: ResourceRepoDep
):
    return await CourseService.add_resource(course_id, data, user, repo, resource_repo)


@router.get("/courses/{course_id}/resources", response_model=list[Resource])
async def list_resources_endpoint(course_id: str, user: UserDep, repo: RepoDep, resource_repo: ResourceRepoDep):
    return await CourseService.list_resources(course_id, user, repo, resource_repo)


@router.get("/courses/{course_id}/messages", response_model=list[MessageOut])
async def chat_history_endpoint(course_id: str, user: UserDep, repo: RepoDep, chat: ChatDep):
    course = await CourseService.get_accessible_course(course_id, user, repo)
    return await chat.history(course.id)
