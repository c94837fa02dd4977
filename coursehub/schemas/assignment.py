from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from coursehub.schemas.summary import CourseSummary, UserSummary


class Priority(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"


class AssignmentStatus(str, Enum):
    PENDING = "Pending"
    SUBMITTED = "Submitted"
    GRADED = "Graded"


class AssignmentCreate(BaseModel):
    courseId: str
    title: str = Field(min_length=1)
    description: str = ""
    dueDate: datetime
    priority: Priority = Priority.NORMAL


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    dueDate: Optional[datetime] = None
    priority: Optional[Priority] = None
    status: Optional[AssignmentStatus] = None


class SubmissionCreate(BaseModel):
    fileUrl: Optional[str] = None
    comment: Optional[str] = None


class Submission(BaseModel):
    userId: str
    fileUrl: str
    comment: Optional[str] = None
    submittedAt: datetime


class Assignment(BaseModel):
    id: str
    courseId: str
    title: str
    description: str = ""
    dueDate: datetime
    priority: Priority = Priority.NORMAL
    status: AssignmentStatus = AssignmentStatus.PENDING
    submissions: List[Submission] = []
    createdAt: datetime


class SubmissionView(Submission):
    user: Optional[UserSummary] = None


class AssignmentView(Assignment):
    course: Optional[CourseSummary] = None
    submissions: List[SubmissionView] = []
