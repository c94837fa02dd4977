from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    id: str
    courseId: str
    senderId: str
    content: str
    createdAt: datetime


class MessageSender(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str | None = None


class MessageOut(BaseModel):
    """Chat message as clients see it, both in history and in live events."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    content: str
    sender: MessageSender
    createdAt: datetime


class SendMessage(BaseModel):
    courseId: str
    senderId: str | None = None
    senderName: str | None = None
    content: str = ""
