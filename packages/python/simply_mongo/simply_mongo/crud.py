"""Generic document operations addressed by collection name.

Every method expects the connection to be ready; calling earlier fails with
``ConnectionNotReadyError`` from the ``database`` lookup.

Example:

    from simply_mongo import get_instance

    async def rename_tag(old: str, new: str) -> None:
        db = get_instance()
        await db.replace_field_value("ideas", "tag", old, new)
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from .filters import IDENTITY_FIELD, field_match, identity_match

Document = Dict[str, Any]


class CrudFacade:
    """Stateless CRUD helpers on top of ``self.database``."""

    database: AsyncIOMotorDatabase

    def _collection(self, name: str) -> AsyncIOMotorCollection:
        return self.database[name]

    # ---------------------------------------------------------
    # READ
    # ---------------------------------------------------------
    async def fetch_one(self, field: str, value: Any, collection: str) -> Optional[Document]:
        """Return the first document where ``field == value`` or ``None``."""

        return await self._collection(collection).find_one(field_match(field, value))

    async def fetch_many(self, field: str, value: Any, collection: str) -> List[Document]:
        """Return every document where ``field == value`` (possibly empty)."""

        cursor = self._collection(collection).find(field_match(field, value))
        return await cursor.to_list(length=None)

    async def fetch_all(self, collection: str) -> List[Document]:
        cursor = self._collection(collection).find({})
        return await cursor.to_list(length=None)

    async def select(self, collection: str, field_names: Sequence[str]) -> List[Document]:
        """Return every document projected to ``_id`` plus ``field_names``."""

        projection = {IDENTITY_FIELD: 1}
        projection.update({name: 1 for name in field_names})
        cursor = self._collection(collection).find({}, projection)
        return await cursor.to_list(length=None)

    # ---------------------------------------------------------
    # CREATE
    # ---------------------------------------------------------
    async def insert(
        self, document: Mapping[str, Any], collection: str, return_document: bool = False
    ) -> Optional[Document]:
        """Insert ``document``; re-fetch it by its new id when asked to."""

        coll = self._collection(collection)
        result = await coll.insert_one(document)
        if not return_document:
            return None
        return await coll.find_one({IDENTITY_FIELD: result.inserted_id})

    # ---------------------------------------------------------
    # UPDATE
    # ---------------------------------------------------------
    async def update_by_id(
        self, document_id: Any, partial_fields: Mapping[str, Any], collection: str
    ) -> bool:
        """Merge ``partial_fields`` into one document. Never raises."""

        return await self.update_by_id_aggregation(
            document_id, {"$set": dict(partial_fields)}, collection
        )

    async def update_by_id_aggregation(
        self, document_id: Any, update_expression: Mapping[str, Any], collection: str
    ) -> bool:
        """Apply ``update_expression`` as given (``$inc``, ``$push``, ...). Never raises."""

        try:
            await self._collection(collection).find_one_and_update(
                identity_match(document_id), dict(update_expression)
            )
        except Exception:
            logger.exception(
                "[MongoDB] Update of {id} in '{collection}' failed",
                id=document_id,
                collection=collection,
            )
            return False
        return True

    async def update_by_field_match(
        self, field: str, value: Any, partial_fields: Mapping[str, Any], collection: str
    ) -> None:
        """Merge ``partial_fields`` into the first document where ``field == value``."""

        await self._collection(collection).find_one_and_update(
            field_match(field, value), {"$set": dict(partial_fields)}
        )

    async def replace_field_value(
        self, collection: str, field: str, old_value: Any, new_value: Any
    ) -> None:
        """Set ``field`` to ``new_value`` on every document currently holding ``old_value``."""

        await self._collection(collection).update_many(
            {field: old_value}, {"$set": {field: new_value}}
        )

    # ---------------------------------------------------------
    # DELETE
    # ---------------------------------------------------------
    async def delete_by_id(self, document_id: Any, collection: str) -> bool:
        try:
            await self._collection(collection).find_one_and_delete(identity_match(document_id))
        except Exception:
            logger.exception(
                "[MongoDB] Delete of {id} in '{collection}' failed",
                id=document_id,
                collection=collection,
            )
            return False
        return True
