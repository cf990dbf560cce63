"""
User directory backed by the `users` MongoDB collection.

Every write is a single-document update, which MongoDB applies atomically.
OTP consumption is a conditional update keyed on the stored code, so two
concurrent validations of the same code cannot both succeed.

Database errors (pymongo.errors.PyMongoError) propagate to the caller
unchanged; DuplicateKeyError on insert signals an already-registered email.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.user import UserDoc
from shared.logging import get_logger

log = get_logger(__name__)

USERS_COLLECTION = "users"


def _to_object_id(user_id: Union[str, ObjectId]) -> Optional[ObjectId]:
    if isinstance(user_id, ObjectId):
        return user_id
    if isinstance(user_id, str) and ObjectId.is_valid(user_id):
        return ObjectId(user_id)
    return None


class UserRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)
        log.info("user_indexes_ensured", collection=USERS_COLLECTION)

    async def find_by_id(self, user_id: Union[str, ObjectId]) -> Optional[UserDoc]:
        oid = _to_object_id(user_id)
        if oid is None:
            return None
        return UserDoc.from_mongo(await self._col.find_one({"_id": oid}))

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return UserDoc.from_mongo(await self._col.find_one({"email": email}))

    async def insert(self, user: UserDoc) -> ObjectId:
        """Insert a new user and return its generated _id.

        Raises:
            pymongo.errors.DuplicateKeyError: email already registered.
        """
        now = datetime.now(timezone.utc)
        user.created_at = user.created_at or now
        user.updated_at = now
        result = await self._col.insert_one(user.to_mongo())
        user.id = result.inserted_id
        return result.inserted_id

    async def save(self, user: UserDoc, *fields: str) -> bool:
        """Persist *fields* of *user* in one atomic ``$set``.

        With no field names the whole document (minus ``_id``) is written.

        Returns:
            ``False`` when the user no longer exists.
        """
        if fields:
            changes: dict[str, Any] = user.model_dump(include=set(fields))
        else:
            changes = user.to_mongo()
            changes.pop("_id", None)
        user.updated_at = datetime.now(timezone.utc)
        changes["updated_at"] = user.updated_at

        result = await self._col.update_one({"_id": user.id}, {"$set": changes})
        return result.matched_count == 1

    async def consume_otp(
        self,
        user_id: ObjectId,
        otp_field: str,
        code: str,
        changes: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Clear *otp_field* if it still holds *code*, applying *changes* in the same write.

        Returns:
            ``True`` if this call consumed the code, ``False`` if it was
            already gone or replaced by a newer issuance.
        """
        update: dict[str, Any] = dict(changes or {})
        update[otp_field] = None
        update["updated_at"] = datetime.now(timezone.utc)

        result = await self._col.update_one(
            {"_id": user_id, f"{otp_field}.code": code},
            {"$set": update},
        )
        return result.modified_count == 1
