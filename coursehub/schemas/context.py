from pydantic import BaseModel

from coursehub.schemas.user import Role


class UserContext(BaseModel):
    user_id: str
    role: Role
    name: str = ""
