from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from coursehub.core.errors import ConcurrentUpdateError
from coursehub.database.assignment_repo import AssignmentRepo
from coursehub.schemas.assignment import Assignment, AssignmentStatus, Submission

# the two-step upsert below can lose a race against a concurrent first
# submission by the same user; retrying once settles it
_UPSERT_ATTEMPTS = 2


class MongoAssignmentRepository(AssignmentRepo):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["assignments"]

    def _from_doc(self, d: dict) -> Assignment:
        base = {k: v for k, v in d.items() if k != "_id"}
        return Assignment(id=d["_id"], **base)

    def _to_doc_from_model(self, a: Assignment) -> dict:
        doc = a.model_dump(mode="python", exclude={"id"})
        doc["_id"] = a.id
        doc["priority"] = a.priority.value
        doc["status"] = a.status.value
        return doc

    async def create(self, assignment: Assignment) -> str:
        await self.col.insert_one(self._to_doc_from_model(assignment))
        return assignment.id

    async def find_one(self, assignment_id: str) -> Optional[Assignment]:
        d = await self.col.find_one({"_id": str(assignment_id)})
        return self._from_doc(d) if d else None

    async def find_for_courses(
        self,
        course_ids: Iterable[str],
        status: Optional[AssignmentStatus] = None,
        due_from: Optional[datetime] = None,
        due_to: Optional[datetime] = None,
    ) -> Sequence[Assignment]:
        filt: dict = {"courseId": {"$in": [str(c) for c in course_ids]}}
        if status is not None:
            filt["status"] = status.value
        due: dict = {}
        if due_from is not None:
            due["$gte"] = due_from
        if due_to is not None:
            due["$lt"] = due_to
        if due:
            filt["dueDate"] = due

        cursor = self.col.find(filt).sort("dueDate", 1)
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def update_fields(self, assignment_id: str, fields: dict) -> Optional[Assignment]:
        patch = {k: (v.value if hasattr(v, "value") else v) for k, v in fields.items()}
        d = await self.col.find_one_and_update(
            {"_id": str(assignment_id)},
            {"$set": patch},
            return_document=ReturnDocument.AFTER,
        )
        return self._from_doc(d) if d else None

    async def upsert_submission(self, assignment_id: str, submission: Submission) -> Optional[Assignment]:
        sub = submission.model_dump()
        open_filter = {"_id": str(assignment_id), "status": {"$ne": AssignmentStatus.GRADED.value}}
        status_set = {"status": AssignmentStatus.SUBMITTED.value}

        for _ in range(_UPSERT_ATTEMPTS):
            # replace in place when the user already has an entry
            d = await self.col.find_one_and_update(
                {**open_filter, "submissions.userId": submission.userId},
                {"$set": {"submissions.$": sub, **status_set}},
                return_document=ReturnDocument.AFTER,
            )
            if d:
                return self._from_doc(d)

            d = await self.col.find_one_and_update(
                {**open_filter, "submissions.userId": {"$ne": submission.userId}},
                {"$push": {"submissions": sub}, "$set": status_set},
                return_document=ReturnDocument.AFTER,
            )
            if d:
                return self._from_doc(d)

            if await self.col.count_documents(open_filter, limit=1) == 0:
                return None
        raise ConcurrentUpdateError("Submission collided with another update, please retry")

    async def set_status(self, assignment_id: str, status: AssignmentStatus) -> Optional[Assignment]:
        d = await self.col.find_one_and_update(
            {"_id": str(assignment_id)},
            {"$set": {"status": status.value}},
            return_document=ReturnDocument.AFTER,
        )
        return self._from_doc(d) if d else None

    async def delete(self, assignment_id: str) -> bool:
        res = await self.col.delete_one({"_id": str(assignment_id)})
        return res.deleted_count > 0

    async def delete_for_course(self, course_id: str) -> int:
        res = await self.col.delete_many({"courseId": str(course_id)})
        return res.deleted_count

    async def ensure_indexes(self):
        await self.col.create_index("courseId")
        await self.col.create_index([("courseId", 1), ("dueDate", 1)])
        await self.col.create_index("submissions.userId")
