"""Shared MongoDB connection and its readiness lifecycle.

The first ``create_connection`` call wins: it registers the ``Database`` as the
process-wide instance and starts connecting in the background on the running
event loop. Later calls hand back that same instance and start nothing.

A ``Database`` moves through ``IDLE -> CONNECTING -> RECONCILING -> READY``.
A failed connection attempt ends in ``FAILED`` and, unless
``MongoSettings.exit_on_failure`` is off, terminates the process.
"""

from __future__ import annotations

import asyncio
import sys
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .crud import CrudFacade
from .errors import ConnectionFailedError, ConnectionNotReadyError, NotInitializedError
from .ready import ReadyCallback, ReadyCallbackRegistry
from .reconcile import ReconcileResult, reconcile_collections
from .settings import MongoSettings, settings as default_settings

ClientFactory = Callable[..., AsyncIOMotorClient]


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    RECONCILING = "reconciling"
    READY = "ready"
    FAILED = "failed"


class Database(CrudFacade):
    """Owns the Motor client, reconciles collections and publishes readiness."""

    def __init__(
        self,
        settings: MongoSettings,
        callbacks: Optional[ReadyCallbackRegistry] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self._settings = settings
        self._callbacks = callbacks if callbacks is not None else ReadyCallbackRegistry()
        self._client_factory = client_factory or AsyncIOMotorClient
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None
        self._state = ConnectionState.IDLE
        self._settled = asyncio.Event()
        self._error: Optional[BaseException] = None
        self._task: Optional[asyncio.Task] = None
        self.reconcile_result: Optional[ReconcileResult] = None

    @property
    def settings(self) -> MongoSettings:
        return self._settings

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            raise ConnectionNotReadyError(
                f"Database '{self._settings.db_name}' is not selected yet ({self._state.value})."
            )
        return self._database

    def start(self) -> asyncio.Task:
        """Begin connecting on the running loop; repeated calls return the same task."""

        if self._task is not None:
            return self._task
        loop = asyncio.get_running_loop()
        self._state = ConnectionState.CONNECTING
        self._task = loop.create_task(self._establish(), name="simply_mongo.connect")
        return self._task

    async def wait_ready(self) -> "Database":
        """Wait until the connection is ready; raise if the attempt failed."""

        await self._settled.wait()
        if self._error is not None:
            raise ConnectionFailedError(
                f"Could not connect to {self._settings.uri}"
            ) from self._error
        return self

    async def ping(self) -> Dict[str, Any]:
        """Run a simple ``ping`` command against the connected server."""

        if self._client is None:
            raise ConnectionNotReadyError("No client has been created yet.")
        await self._client.admin.command("ping")
        return {"ok": True}

    async def _establish(self) -> None:
        try:
            await self._connect()
            self._state = ConnectionState.RECONCILING
            self._database = self._client[self._settings.db_name]
            self.reconcile_result = await reconcile_collections(
                self._database, self._settings.collections
            )
        except Exception as exc:
            self._fail(exc)
            return

        self._state = ConnectionState.READY
        self._settled.set()
        logger.info("[MongoDB] Database '{name}' is ready", name=self._settings.db_name)
        self._callbacks.fire_all()

    async def _connect(self) -> None:
        if self._settings.has_credentials:
            logger.info("[MongoDB] Establishing connection with username and password.")
        else:
            logger.info("[MongoDB] Establishing connection without using a username or password.")

        self._client = self._client_factory(self._settings.uri, **self._settings.client_kwargs())
        # Motor connects lazily; ping forces server selection.
        await self._client.admin.command("ping")

    def _fail(self, exc: BaseException) -> None:
        self._state = ConnectionState.FAILED
        self._error = exc
        self._settled.set()
        logger.opt(exception=exc).error(
            "[MongoDB] Failed to establish connection to database. Did you specify the correct url?"
        )
        if self._settings.exit_on_failure:
            sys.exit(1)


_instance: Optional[Database] = None
_ready_callbacks = ReadyCallbackRegistry()


def create_connection_from_settings(
    settings: Optional[MongoSettings] = None,
    *,
    client_factory: Optional[ClientFactory] = None,
) -> Database:
    """Create the shared ``Database`` from ``settings`` (first call wins).

    Must be called from a running event loop; connecting happens in a
    background task.
    """

    global _instance
    if _instance is not None:
        logger.debug("[MongoDB] Connection already created, returning existing instance")
        return _instance

    # Fail before registering anything when there is no loop to connect on.
    asyncio.get_running_loop()

    database = Database(settings or default_settings, _ready_callbacks, client_factory)
    _instance = database
    database.start()
    return database


def create_connection(
    uri: str,
    db_name: str,
    collections: Iterable[str] = (),
    username: Optional[str] = None,
    password: Optional[str] = None,
    *,
    client_factory: Optional[ClientFactory] = None,
) -> Database:
    """Create the shared ``Database``; later calls ignore their arguments."""

    if _instance is not None:
        return _instance
    settings = MongoSettings(
        uri=uri,
        db_name=db_name,
        collections=collections,
        username=username,
        password=password,
    )
    return create_connection_from_settings(settings, client_factory=client_factory)


def get_instance() -> Database:
    """Return the shared ``Database`` in whatever state it is in."""

    if _instance is None:
        raise NotInitializedError("Create a database connection first.")
    return _instance


def on_ready(callback: ReadyCallback) -> ReadyCallback:
    """Run ``callback`` once the shared connection is ready.

    Usable as a decorator. Registering after readiness runs the callback
    right away.
    """

    _ready_callbacks.register(callback)
    return callback
