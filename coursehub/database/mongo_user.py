from typing import Iterable, List, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from coursehub.core.errors import ConflictError
from coursehub.database.user_repo import UserRepo
from coursehub.schemas.user import User


class MongoUserRepository(UserRepo):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["users"]

    def _from_doc(self, d: dict) -> User:
        base = {k: v for k, v in d.items() if k != "_id"}
        return User(id=d["_id"], **base)

    async def create(self, user: User) -> str:
        doc = user.model_dump(exclude={"id"})
        doc["_id"] = user.id
        doc["role"] = user.role.value
        try:
            await self.col.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Email already registered")
        return user.id

    async def find_one(self, user_id: str) -> Optional[User]:
        d = await self.col.find_one({"_id": str(user_id)})
        return self._from_doc(d) if d else None

    async def find_by_email(self, email: str) -> Optional[User]:
        d = await self.col.find_one({"email": email.strip().lower()})
        return self._from_doc(d) if d else None

    async def find_many(self, user_ids: Iterable[str]) -> Sequence[User]:
        cursor = self.col.find({"_id": {"$in": list({str(u) for u in user_ids})}})
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def ensure_indexes(self):
        await self.col.create_index("email", unique=True)
