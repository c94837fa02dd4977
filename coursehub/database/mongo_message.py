from typing import List, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase

from coursehub.database.message_repo import MessageRepo
from coursehub.schemas.message import Message


class MongoMessageRepository(MessageRepo):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["messages"]

    def _from_doc(self, d: dict) -> Message:
        base = {k: v for k, v in d.items() if k != "_id"}
        return Message(id=d["_id"], **base)

    async def create(self, message: Message) -> str:
        doc = message.model_dump(exclude={"id"})
        doc["_id"] = message.id
        await self.col.insert_one(doc)
        return message.id

    async def find_for_course(self, course_id: str) -> Sequence[Message]:
        # ObjectId strings sort by creation, which breaks createdAt ties
        cursor = self.col.find({"courseId": str(course_id)}).sort([("createdAt", 1), ("_id", 1)])
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def delete_for_course(self, course_id: str) -> int:
        res = await self.col.delete_many({"courseId": str(course_id)})
        return res.deleted_count

    async def ensure_indexes(self):
        await self.col.create_index([("courseId", 1), ("createdAt", 1)])
