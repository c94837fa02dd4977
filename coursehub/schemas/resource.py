from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ResourceType(str, Enum):
    FILE = "file"
    LINK = "link"


class ResourceCreate(BaseModel):
    title: str = Field(min_length=1)
    fileUrl: str = Field(min_length=1)
    type: ResourceType = ResourceType.FILE


class Resource(ResourceCreate):
    id: str
    courseId: str
    uploadedBy: str
    createdAt: datetime
