from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from coursehub.schemas.assignment import Assignment
from coursehub.schemas.summary import UserSummary


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CourseCreate(BaseModel):
    title: str = Field(min_length=1)
    code: str = Field(min_length=1)
    description: str = ""

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        v = normalize_code(v)
        if not v:
            raise ValueError("Course code is required")
        return v


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    code: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = normalize_code(v)
        if not v:
            raise ValueError("Course code cannot be blank")
        return v


class Course(BaseModel):
    id: str
    title: str
    code: str
    description: str = ""
    ownerId: str
    members: List[str] = []
    createdAt: datetime


class CourseView(Course):
    owner: Optional[UserSummary] = None
    memberDetails: List[UserSummary] = []


class CourseDetail(BaseModel):
    course: CourseView
    assignments: List[Assignment]
