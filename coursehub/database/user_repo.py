from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence

from coursehub.schemas.user import User


class UserRepo(ABC):
    @abstractmethod
    async def create(self, user: User) -> str:
        """Insert a user. Raises ConflictError if the email is taken."""
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def find_many(self, user_ids: Iterable[str]) -> Sequence[User]:
        raise NotImplementedError
