from pydantic import BaseModel


class UserSummary(BaseModel):
    id: str
    name: str
    email: str


class CourseSummary(BaseModel):
    id: str
    title: str
    code: str
