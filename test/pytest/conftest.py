from datetime import datetime, timezone
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from coursehub.core.errors import ConflictError, PersistenceError
from coursehub.core.security import create_access_token
from coursehub.main import Repositories, create_app
from coursehub.schemas.assignment import Assignment, AssignmentStatus, Submission
from coursehub.schemas.context import UserContext
from coursehub.schemas.course import Course
from coursehub.schemas.message import Message
from coursehub.schemas.resource import Resource
from coursehub.schemas.user import Role, User
from coursehub.services.assignment_service import upsert_submission


# ------------------------- Fake repositories -------------------------
class FakeCourseRepo:
    def __init__(self):
        self.items: dict[str, Course] = {}

    async def create(self, course: Course) -> str:
        if any(c.code == course.code for c in self.items.values()):
            raise ConflictError("Course code already exists")
        self.items[course.id] = course.model_copy(deep=True)
        return course.id

    async def find_one(self, course_id: str) -> Optional[Course]:
        c = self.items.get(course_id)
        return c.model_copy(deep=True) if c else None

    async def find_by_code(self, code: str) -> Optional[Course]:
        for c in self.items.values():
            if c.code == code:
                return c.model_copy(deep=True)
        return None

    async def find_accessible(self, user_id: str):
        found = [c for c in self.items.values() if c.ownerId == user_id or user_id in c.members]
        return [c.model_copy(deep=True) for c in sorted(found, key=lambda c: c.createdAt, reverse=True)]

    async def add_member(self, course_id: str, user_id: str) -> bool:
        c = self.items.get(course_id)
        if c is None or user_id in c.members:
            return False
        c.members.append(user_id)
        return True

    async def remove_member(self, course_id: str, user_id: str) -> bool:
        c = self.items.get(course_id)
        if c is None or user_id not in c.members:
            return False
        c.members.remove(user_id)
        return True

    async def update_fields(self, course_id: str, fields: dict) -> Optional[Course]:
        c = self.items.get(course_id)
        if c is None:
            return None
        if "code" in fields and any(o.code == fields["code"] and o.id != course_id for o in self.items.values()):
            raise ConflictError("Course code already exists")
        self.items[course_id] = c.model_copy(update=fields)
        return self.items[course_id].model_copy(deep=True)

    async def delete(self, course_id: str) -> bool:
        return self.items.pop(course_id, None) is not None


class FakeAssignmentRepo:
    def __init__(self):
        self.items: dict[str, Assignment] = {}

    async def create(self, assignment: Assignment) -> str:
        self.items[assignment.id] = assignment.model_copy(deep=True)
        return assignment.id

    async def find_one(self, assignment_id: str) -> Optional[Assignment]:
        a = self.items.get(assignment_id)
        return a.model_copy(deep=True) if a else None

    async def find_for_courses(self, course_ids: Iterable[str], status=None, due_from=None, due_to=None):
        ids = set(course_ids)
        found = [
            a for a in self.items.values()
            if a.courseId in ids
            and (status is None or a.status == status)
            and (due_from is None or a.dueDate >= due_from)
            and (due_to is None or a.dueDate < due_to)
        ]
        return [a.model_copy(deep=True) for a in sorted(found, key=lambda a: a.dueDate)]

    async def update_fields(self, assignment_id: str, fields: dict) -> Optional[Assignment]:
        a = self.items.get(assignment_id)
        if a is None:
            return None
        self.items[assignment_id] = a.model_copy(update=fields)
        return self.items[assignment_id].model_copy(deep=True)

    async def upsert_submission(self, assignment_id: str, submission: Submission) -> Optional[Assignment]:
        a = self.items.get(assignment_id)
        if a is None or a.status == AssignmentStatus.GRADED:
            return None
        a.submissions = upsert_submission(a.submissions, submission)
        a.status = AssignmentStatus.SUBMITTED
        return a.model_copy(deep=True)

    async def set_status(self, assignment_id: str, status: AssignmentStatus) -> Optional[Assignment]:
        a = self.items.get(assignment_id)
        if a is None:
            return None
        a.status = status
        return a.model_copy(deep=True)

    async def delete(self, assignment_id: str) -> bool:
        return self.items.pop(assignment_id, None) is not None

    async def delete_for_course(self, course_id: str) -> int:
        doomed = [k for k, a in self.items.items() if a.courseId == course_id]
        for k in doomed:
            del self.items[k]
        return len(doomed)


class FakeResourceRepo:
    def __init__(self):
        self.items: list[Resource] = []

    async def create(self, resource: Resource) -> str:
        self.items.append(resource)
        return resource.id

    async def find_for_course(self, course_id: str):
        found = [r for r in self.items if r.courseId == course_id]
        return sorted(found, key=lambda r: r.createdAt, reverse=True)

    async def delete_for_course(self, course_id: str) -> int:
        before = len(self.items)
        self.items = [r for r in self.items if r.courseId != course_id]
        return before - len(self.items)


class FakeMessageRepo:
    def __init__(self):
        self.items: list[Message] = []
        self.fail = False

    async def create(self, message: Message) -> str:
        if self.fail:
            raise PersistenceError("database unavailable")
        self.items.append(message)
        return message.id

    async def find_for_course(self, course_id: str):
        found = [m for m in self.items if m.courseId == course_id]
        return sorted(found, key=lambda m: m.createdAt)

    async def delete_for_course(self, course_id: str) -> int:
        before = len(self.items)
        self.items = [m for m in self.items if m.courseId != course_id]
        return before - len(self.items)


class FakeUserRepo:
    def __init__(self):
        self.items: dict[str, User] = {}

    async def create(self, user: User) -> str:
        if any(u.email == user.email for u in self.items.values()):
            raise ConflictError("Email already registered")
        self.items[user.id] = user
        return user.id

    async def find_one(self, user_id: str) -> Optional[User]:
        return self.items.get(user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        for u in self.items.values():
            if u.email == email:
                return u
        return None

    async def find_many(self, user_ids: Iterable[str]):
        ids = set(user_ids)
        return [u for u in self.items.values() if u.id in ids]


# ------------------------------- Fixtures -------------------------------------
@pytest.fixture
def course_repo():
    return FakeCourseRepo()


@pytest.fixture
def assignment_repo():
    return FakeAssignmentRepo()


@pytest.fixture
def resource_repo():
    return FakeResourceRepo()


@pytest.fixture
def message_repo():
    return FakeMessageRepo()


@pytest.fixture
def user_repo():
    return FakeUserRepo()


def _user(user_id: str, name: str, role: Role) -> UserContext:
    return UserContext(user_id=user_id, role=role, name=name)


@pytest.fixture
def owner():
    return _user("u-owner", "Olga", Role.STUDENT)


@pytest.fixture
def instructor():
    return _user("u-instr", "Ivan", Role.INSTRUCTOR)


@pytest.fixture
def student():
    return _user("u-stud", "Sara", Role.STUDENT)


@pytest.fixture
def outsider():
    return _user("u-out", "Omar", Role.STUDENT)


@pytest.fixture
def repositories(course_repo, assignment_repo, resource_repo, message_repo, user_repo):
    return Repositories(
        courses=course_repo,
        assignments=assignment_repo,
        resources=resource_repo,
        messages=message_repo,
        users=user_repo,
    )


@pytest.fixture
def app(repositories):
    return create_app(repositories)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(user_repo):
    """Store a user and return (context, auth headers, token)."""

    def _make(user_id: str, name: str, role: Role = Role.STUDENT):
        user_repo.items[user_id] = User(
            id=user_id,
            name=name,
            email=f"{user_id}@example.com",
            passwordHash="unused",
            role=role,
            createdAt=datetime.now(timezone.utc),
        )
        token = create_access_token(user_id, role.value)
        return _user(user_id, name, role), {"Authorization": f"Bearer {token}"}, token

    return _make
