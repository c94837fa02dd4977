from typing import List, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from coursehub.core.errors import ConflictError
from coursehub.database.course_repo import CourseRepo
from coursehub.schemas.course import Course


class MongoCourseRepository(CourseRepo):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["courses"]

    def _from_doc(self, d: dict) -> Course:
        base = {k: v for k, v in d.items() if k != "_id"}
        return Course(id=d["_id"], **base)

    async def create(self, course: Course) -> str:
        doc = course.model_dump(exclude={"id"})
        doc["_id"] = course.id
        try:
            await self.col.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Course code already exists")
        return course.id

    async def find_one(self, course_id: str) -> Optional[Course]:
        d = await self.col.find_one({"_id": str(course_id)})
        return self._from_doc(d) if d else None

    async def find_by_code(self, code: str) -> Optional[Course]:
        d = await self.col.find_one({"code": code})
        return self._from_doc(d) if d else None

    async def find_accessible(self, user_id: str) -> Sequence[Course]:
        cursor = self.col.find(
            {"$or": [{"ownerId": str(user_id)}, {"members": str(user_id)}]}
        ).sort("createdAt", -1)
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def add_member(self, course_id: str, user_id: str) -> bool:
        res = await self.col.update_one(
            {"_id": str(course_id), "members": {"$ne": str(user_id)}},
            {"$addToSet": {"members": str(user_id)}},
        )
        return res.modified_count > 0

    async def remove_member(self, course_id: str, user_id: str) -> bool:
        res = await self.col.update_one(
            {"_id": str(course_id)},
            {"$pull": {"members": str(user_id)}},
        )
        return res.modified_count > 0

    async def update_fields(self, course_id: str, fields: dict) -> Optional[Course]:
        try:
            d = await self.col.find_one_and_update(
                {"_id": str(course_id)},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ConflictError("Course code already exists")
        return self._from_doc(d) if d else None

    async def delete(self, course_id: str) -> bool:
        res = await self.col.delete_one({"_id": str(course_id)})
        return res.deleted_count > 0

    async def ensure_indexes(self):
        await self.col.create_index("code", unique=True)
        await self.col.create_index("ownerId")
        await self.col.create_index("members")
