from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from coursehub.core.deps import get_assignment_repository, get_course_repository, get_user_repository
from coursehub.database.assignment_repo import AssignmentRepo
from coursehub.database.course_repo import CourseRepo
from coursehub.database.user_repo import UserRepo
from coursehub.schemas.assignment import (
    AssignmentCreate,
    AssignmentStatus,
    AssignmentUpdate,
    AssignmentView,
    SubmissionCreate,
)
from coursehub.schemas.context import UserContext
from coursehub.services.assignment_service import AssignmentService
from coursehub.services.auth_service import AuthService
from coursehub.services.views import assignment_view, assignment_views

router = APIRouter()

RepoDep = Annotated[AssignmentRepo, Depends(get_assignment_repository)]
CourseRepoDep = Annotated[CourseRepo, Depends(get_course_repository)]
UserRepoDep = Annotated[UserRepo, Depends(get_user_repository)]
UserDep = Annotated[UserContext, Depends(AuthService.get_current_user)]


@router.post("/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment_endpoint(
    data: AssignmentCreate,
    user: UserDep,
    repo: RepoDep,
    course_repo: CourseRepoDep,
    user_repo: UserRepoDep,
):
    assignment = await AssignmentService.create_assignment(data, user, repo, course_repo)
    view = await assignment_view(assignment, course_repo, user_repo)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=view.model_dump(mode="json"),
        headers={"Location": f"/api/v1/assignments/{assignment.id}"},
    )


@router.get("/assignments", response_model=list[AssignmentView])
async def list_assignments_endpoint(
    user: UserDep,
    repo: RepoDep,
    course_repo: CourseRepoDep,
    user_repo: UserRepoDep,
    course: Annotated[Optional[str], Query(alias="courseId")] = None,
    assignment_status: Annotated[Optional[AssignmentStatus], Query(alias="status")] = None,
    due_date: Annotated[Optional[date], Query(alias="dueDate")] = None,
):
    assignments = await AssignmentService.list_assignments(
        user, repo, course_repo, course_id=course, status=assignment_status, due_date=due_date
    )
    return await assignment_views(assignments, course_repo, user_repo)


@router.get("/assignments/{assignment_id}", response_model=AssignmentView)
async def get_assignment_endpoint(
    assignment_id: str,
    user: UserDep,
    repo: RepoDep,
    course_repo: CourseRepoDep,
    user_repo: UserRepoDep,
):
    assignment = await AssignmentService.get_assignment(assignment_id, user, repo, course_repo)
    return await assignment_view(assignment, course_repo, user_repo)


@router.put("/assignments/{assignment_id}", response_model=AssignmentView)
async def update_assignment_endpoint(
    assignment_id: str,
    data: AssignmentUpdate,
    user: UserDep,
    repo: RepoDep,
    course_repo: CourseRepoDep,
    user_repo: UserRepoDep,
):
    assignment = await AssignmentService.update_assignment(assignment_id, data, user, repo, course_repo)
    return await assignment_view(assignment, course_repo, user_repo)


@router.delete("/assignments/{assignment_id}")
async def delete_assignment_endpoint(
    assignment_id: str,
    user: UserDep,
    repo: RepoDep,
    course_repo: CourseRepoDep,
):
    await AssignmentService.delete_assignment(assignment_id, user, repo, course_repo)
    return {"message": "Assignment deleted successfully"}


@router.post("/assignments/{assignment_id}/submit", response_model=AssignmentView)
async def submit_assignment_endpoint(
    assignment_id: str,
    data: SubmissionCreate,
    user: UserDep,
    repo: RepoDep,
    course_repo: CourseRepoDep,
    user_repo: UserRepoDep,
):
    assignment = await AssignmentService.submit(assignment_id, data, user, repo, course_repo)
    return await assignment_view(assignment, course_repo, user_repo)


@router.put("/assignments/{assignment_id}/grade", response_model=AssignmentView)
async def grade_assignment_endpoint(
    assignment_id: str,
    user: UserDep,
    repo: RepoDep,
    course_repo: CourseRepoDep,
    user_repo: UserRepoDep,
):
    assignment = await AssignmentService.grade(assignment_id, user, repo, course_repo)
    return await assignment_view(assignment, course_repo, user_repo)
