"""Shared fixtures: an in-memory stand-in for the Motor client."""

from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import CollectionInvalid, OperationFailure, ServerSelectionTimeoutError

from simply_mongo import connection as connection_module
from simply_mongo.ready import ReadyCallbackRegistry


def _matches(doc, query):
    return all(doc.get(key) == value for key, value in query.items())


def _project(doc, projection):
    if not projection:
        return dict(doc)
    return {key: value for key, value in doc.items() if projection.get(key)}


def _apply(doc, update):
    for key, value in update.get("$set", {}).items():
        doc[key] = value
    for key, value in update.get("$inc", {}).items():
        doc[key] = doc.get(key, 0) + value


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    async def to_list(self, length=None):
        return list(self._docs if length is None else self._docs[:length])


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.docs = []
        self.calls = []
        self.error = None

    def _check(self, op):
        self.calls.append(op)
        if self.error is not None:
            raise self.error

    async def find_one(self, query, projection=None):
        self._check("find_one")
        for doc in self.docs:
            if _matches(doc, query):
                return _project(doc, projection)
        return None

    def find(self, query, projection=None):
        self._check("find")
        return FakeCursor([_project(doc, projection) for doc in self.docs if _matches(doc, query)])

    async def insert_one(self, document):
        self._check("insert_one")
        document.setdefault("_id", ObjectId())
        self.docs.append(dict(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one_and_update(self, query, update):
        self._check("find_one_and_update")
        for doc in self.docs:
            if _matches(doc, query):
                before = dict(doc)
                _apply(doc, update)
                return before
        return None

    async def find_one_and_delete(self, query):
        self._check("find_one_and_delete")
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                return self.docs.pop(index)
        return None

    async def update_many(self, query, update):
        self._check("update_many")
        matched = [doc for doc in self.docs if _matches(doc, query)]
        for doc in matched:
            _apply(doc, update)
        return SimpleNamespace(matched_count=len(matched), modified_count=len(matched))


class FakeDatabase:
    def __init__(self, name):
        self.name = name
        self.existing = set()
        self.collections = {}
        self.list_calls = 0
        self.create_calls = []
        # name -> exception raised by create_collection
        self.create_errors = {}
        # names another client "creates" right after we list
        self.appear_after_list = set()
        self.list_error = None

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    async def list_collection_names(self):
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        names = sorted(self.existing)
        self.existing |= self.appear_after_list
        return names

    async def create_collection(self, name):
        self.create_calls.append(name)
        if name in self.create_errors:
            raise self.create_errors[name]
        if name in self.existing:
            raise CollectionInvalid(f"collection {name} already exists")
        self.existing.add(name)
        return self[name]


class FakeAdmin:
    def __init__(self, mongo):
        self._mongo = mongo
        self.commands = []

    async def command(self, name):
        self.commands.append(name)
        if self._mongo.ping_error is not None:
            raise self._mongo.ping_error
        return {"ok": 1.0}


class FakeClient:
    def __init__(self, mongo, uri, kwargs):
        self._mongo = mongo
        self.uri = uri
        self.kwargs = kwargs
        self.admin = FakeAdmin(mongo)

    def __getitem__(self, name):
        return self._mongo.database(name)


class FakeMongo:
    """Callable used as ``client_factory``; remembers every client it built."""

    def __init__(self):
        self.clients = []
        self.databases = {}
        self.ping_error = None

    def __call__(self, uri, **kwargs):
        client = FakeClient(self, uri, kwargs)
        self.clients.append(client)
        return client

    def database(self, name):
        if name not in self.databases:
            self.databases[name] = FakeDatabase(name)
        return self.databases[name]

    def fail_connecting(self):
        self.ping_error = ServerSelectionTimeoutError("localhost:27017: connection refused")

    @staticmethod
    def namespace_exists(name):
        return OperationFailure(f"Collection {name} already exists.", code=48)


@pytest.fixture()
def fake_mongo():
    return FakeMongo()


@pytest.fixture()
def fake_db():
    return FakeDatabase("app")


@pytest.fixture(autouse=True)
def fresh_connection_state(monkeypatch):
    monkeypatch.setattr(connection_module, "_instance", None)
    monkeypatch.setattr(connection_module, "_ready_callbacks", ReadyCallbackRegistry())
