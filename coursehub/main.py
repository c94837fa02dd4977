# coursehub/main.py
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
import sys
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient

from coursehub.core.config import settings
from coursehub.core.errors import register_exception_handlers
from coursehub.database.assignment_repo import AssignmentRepo
from coursehub.database.course_repo import CourseRepo
from coursehub.database.message_repo import MessageRepo
from coursehub.database.mongo_assignment import MongoAssignmentRepository
from coursehub.database.mongo_course import MongoCourseRepository
from coursehub.database.mongo_message import MongoMessageRepository
from coursehub.database.mongo_resource import MongoResourceRepository
from coursehub.database.mongo_user import MongoUserRepository
from coursehub.database.resource_repo import ResourceRepo
from coursehub.database.user_repo import UserRepo
from coursehub.routers.v1 import assignment, auth, chat, course, health
from coursehub.services.chat_service import ChatRoomCoordinator

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger("coursehub")


@dataclass
class Repositories:
    courses: CourseRepo
    assignments: AssignmentRepo
    resources: ResourceRepo
    messages: MessageRepo
    users: UserRepo


def _install(app: FastAPI, repos: Repositories) -> None:
    app.state.course_repo = repos.courses
    app.state.assignment_repo = repos.assignments
    app.state.resource_repo = repos.resources
    app.state.message_repo = repos.messages
    app.state.user_repo = repos.users
    # the one and only owner of room membership in this process
    app.state.chat_coordinator = ChatRoomCoordinator(repos.messages, repos.users, send_timeout=settings.chat_send_timeout)


def create_app(repositories: Optional[Repositories] = None) -> FastAPI:
    """Build the application. ``repositories`` replaces the Mongo-backed ones (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if repositories is not None:
            yield
            return

        client = AsyncIOMotorClient(settings.mongo_uri, uuidRepresentation="standard", tz_aware=True)
        db = client[settings.mongo_db_name]
        mongo_repos = [
            MongoCourseRepository(db),
            MongoAssignmentRepository(db),
            MongoResourceRepository(db),
            MongoMessageRepository(db),
            MongoUserRepository(db),
        ]
        for repo in mongo_repos:
            await repo.ensure_indexes()
        _install(app, Repositories(*mongo_repos))
        logger.info("Connected to MongoDB database %s", settings.mongo_db_name)

        try:
            yield
        finally:
            client.close()

    app = FastAPI(
        title="CourseHub",
        description="Courses, assignments and per-course chat",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins, allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )
    register_exception_handlers(app)
    if repositories is not None:
        _install(app, repositories)

    app.include_router(health.router,     prefix="/api/v1", tags=["health"])
    app.include_router(auth.router,       prefix="/api/v1", tags=["auth"])
    app.include_router(course.router,     prefix="/api/v1", tags=["courses"])
    app.include_router(assignment.router, prefix="/api/v1", tags=["assignments"])
    app.include_router(chat.router,       prefix="/api/v1", tags=["chat"])
    return app

app = create_app()
