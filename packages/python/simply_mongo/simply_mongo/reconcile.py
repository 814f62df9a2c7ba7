"""Create the declared collections that are missing from the database."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, List

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import CollectionInvalid, OperationFailure, PyMongoError

# Server error code for "collection already exists".
NAMESPACE_EXISTS = 48


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""

    created: List[str] = field(default_factory=list)
    already_existing: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _missing(desired: Iterable[str], existing: Iterable[str]) -> List[str]:
    present = set(existing)
    return [name for name in desired if name not in present]


def _is_already_exists(exc: PyMongoError) -> bool:
    if isinstance(exc, CollectionInvalid):
        return True
    return isinstance(exc, OperationFailure) and exc.code == NAMESPACE_EXISTS


async def _create(database: AsyncIOMotorDatabase, name: str, result: ReconcileResult) -> None:
    try:
        await database.create_collection(name)
    except Exception as exc:
        if isinstance(exc, PyMongoError) and _is_already_exists(exc):
            logger.info("[MongoDB] Collection '{name}' already exists", name=name)
            result.already_existing.append(name)
            return
        logger.error("[MongoDB] Failed to create collection '{name}': {exc}", name=name, exc=exc)
        result.failed.append(name)
        return
    logger.info("[MongoDB] Created new collection '{name}'", name=name)
    result.created.append(name)


async def reconcile_collections(
    database: AsyncIOMotorDatabase, desired: Iterable[str]
) -> ReconcileResult:
    """Ensure every name in ``desired`` exists as a collection in ``database``.

    Existing collections are listed once and only the missing ones are created,
    concurrently. A collection that appears between the listing and its create
    call counts as already existing. Any other create failure is logged and
    recorded without stopping the remaining creates.
    """

    desired = list(dict.fromkeys(desired))
    result = ReconcileResult()
    if not desired:
        logger.info("[MongoDB] No collections were specified for creation.")
        return result

    existing = await database.list_collection_names()
    missing = _missing(desired, existing)
    result.already_existing.extend(name for name in desired if name not in missing)

    if missing:
        # Creates settle in any order; keep the reported lists in declared order.
        await asyncio.gather(*(_create(database, name, result) for name in missing))
        order = {name: index for index, name in enumerate(desired)}
        result.created.sort(key=order.__getitem__)
        result.already_existing.sort(key=order.__getitem__)
        result.failed.sort(key=order.__getitem__)

    logger.info(
        "[MongoDB] Connection complete, utilizing {count} collections.",
        count=len(desired) - len(result.failed),
    )
    return result
