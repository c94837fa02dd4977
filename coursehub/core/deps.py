from fastapi import Request
from starlette.requests import HTTPConnection

from coursehub.database.assignment_repo import AssignmentRepo
from coursehub.database.course_repo import CourseRepo
from coursehub.database.message_repo import MessageRepo
from coursehub.database.resource_repo import ResourceRepo
from coursehub.database.user_repo import UserRepo
from coursehub.services.chat_service import ChatRoomCoordinator


def _state(conn: HTTPConnection, name: str):
    value = getattr(conn.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialised")
    return value


def get_assignment_repository(request: Request) -> AssignmentRepo:
    return _state(request, "assignment_repo")


def get_course_repository(conn: HTTPConnection) -> CourseRepo:
    return _state(conn, "course_repo")


def get_resource_repository(request: Request) -> ResourceRepo:
    return _state(request, "resource_repo")


def get_message_repository(request: Request) -> MessageRepo:
    return _state(request, "message_repo")


def get_user_repository(conn: HTTPConnection) -> UserRepo:
    return _state(conn, "user_repo")


def get_chat_coordinator(conn: HTTPConnection) -> ChatRoomCoordinator:
    return _state(conn, "chat_coordinator")
