from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from tovalley_chat.models.member import MemberDocument


class MemberRepository:
    """Read-only view over the member directory owned by the account service."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db.get_collection("members")

    async def find_by_id(self, member_id: str) -> Optional[MemberDocument]:
        oid = _to_object_id(member_id)
        if oid is None:
            return None
        member = await self._collection.find_one({"_id": oid})
        if member:
            member["_id"] = str(member["_id"])  # normalize to string for API layer
        return member

    async def find_by_nickname(self, nickname: str) -> Optional[MemberDocument]:
        member = await self._collection.find_one({"nickname": nickname})
        if member:
            member["_id"] = str(member["_id"])
        return member

    async def find_by_id_or_nickname(self, member_id: str, nickname: str) -> List[MemberDocument]:
        """Returns at most two members: the one with member_id and the one called nickname."""
        clauses: List[Dict[str, Any]] = [{"nickname": nickname}]
        oid = _to_object_id(member_id)
        if oid is not None:
            clauses.append({"_id": oid})
        items = await self._collection.find({"$or": clauses}).to_list(length=2)
        for it in items:
            it["_id"] = str(it["_id"])
        return items


def _to_object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
