"""Single shared MongoDB connection with collection setup and generic CRUD.

Example usage:

    from simply_mongo import create_connection, get_instance, on_ready

    @on_ready
    def announce():
        print("database ready")

    async def main():
        db = create_connection("mongodb://localhost:27017", "app", ["users", "sessions"])
        await db.wait_ready()
        await get_instance().insert({"name": "alice"}, "users")
"""

from .connection import (
    ConnectionState,
    Database,
    create_connection,
    create_connection_from_settings,
    get_instance,
    on_ready,
)
from .crud import CrudFacade
from .errors import (
    ConnectionFailedError,
    ConnectionNotReadyError,
    DuplicateCallbackError,
    InvalidCallbackError,
    NotInitializedError,
    SimplyMongoError,
)
from .filters import IDENTITY_FIELD, field_match
from .log import configure_logging
from .ready import ReadyCallbackRegistry
from .reconcile import ReconcileResult, reconcile_collections
from .settings import MongoSettings, settings

__all__ = [
    "ConnectionState",
    "Database",
    "create_connection",
    "create_connection_from_settings",
    "get_instance",
    "on_ready",
    "CrudFacade",
    "SimplyMongoError",
    "NotInitializedError",
    "ConnectionNotReadyError",
    "ConnectionFailedError",
    "InvalidCallbackError",
    "DuplicateCallbackError",
    "IDENTITY_FIELD",
    "field_match",
    "configure_logging",
    "ReadyCallbackRegistry",
    "ReconcileResult",
    "reconcile_collections",
    "MongoSettings",
    "settings",
]
