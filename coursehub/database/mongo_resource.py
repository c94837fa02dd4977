from typing import List, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase

from coursehub.database.resource_repo import ResourceRepo
from coursehub.schemas.resource import Resource


class MongoResourceRepository(ResourceRepo):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["resources"]

    def _from_doc(self, d: dict) -> Resource:
        base = {k: v for k, v in d.items() if k != "_id"}
        return Resource(id=d["_id"], **base)

    async def create(self, resource: Resource) -> str:
        doc = resource.model_dump(exclude={"id"})
        doc["_id"] = resource.id
        doc["type"] = resource.type.value
        await self.col.insert_one(doc)
        return resource.id

    async def find_for_course(self, course_id: str) -> Sequence[Resource]:
        cursor = self.col.find({"courseId": str(course_id)}).sort("createdAt", -1)
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def delete_for_course(self, course_id: str) -> int:
        res = await self.col.delete_many({"courseId": str(course_id)})
        return res.deleted_count

    async def ensure_indexes(self):
        await self.col.create_index([("courseId", 1), ("createdAt", -1)])
