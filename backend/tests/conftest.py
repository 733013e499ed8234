"""
CRM Projects - Shared test fixtures
In-memory stand-in for the Motor database + authenticated TestClient.
Run: cd backend && pytest tests -v
"""

import copy
import re
import uuid

import pytest
from fastapi.testclient import TestClient

from services.permissions import get_preset_permissions


# ═══════════════════════════════════════════════════════════════
# IN-MEMORY MOTOR STAND-IN
# ═══════════════════════════════════════════════════════════════

def _get_path(doc, path):
    value = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _matches(doc, query):
    for key, expected in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in expected):
                return False
            continue
        value = _get_path(doc, key)
        if isinstance(expected, dict) and any(k.startswith("$") for k in expected):
            for op, arg in expected.items():
                if op == "$in" and value not in arg:
                    return False
                if op == "$ne" and value == arg:
                    return False
                if op == "$gt" and not (value is not None and value > arg):
                    return False
                if op == "$gte" and not (value is not None and value >= arg):
                    return False
                if op == "$lt" and not (value is not None and value < arg):
                    return False
                if op == "$regex":
                    flags = re.IGNORECASE if "i" in expected.get("$options", "") else 0
                    if value is None or not re.search(arg, str(value), flags):
                        return False
        elif value != expected:
            return False
    return True


def _project(doc, projection):
    doc = copy.deepcopy(doc)
    if not projection:
        return doc
    included = [k for k, v in projection.items() if v and k != "_id"]
    if included:
        kept = {k: doc[k] for k in included if k in doc}
        if projection.get("_id", 1) and "_id" in doc:
            kept["_id"] = doc["_id"]
        return kept
    for key, flag in projection.items():
        if not flag:
            doc.pop(key, None)
    return doc


class _Result:
    def __init__(self, **counts):
        self.__dict__.update(counts)


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs = sorted(
            self._docs,
            key=lambda d: (d.get(key) is not None, d.get(key)),
            reverse=direction == -1,
        )
        return self

    def skip(self, n):
        self._docs = self._docs[n:]
        return self

    def limit(self, n):
        if n:
            self._docs = self._docs[:n]
        return self

    async def to_list(self, length=None):
        if length:
            return self._docs[:length]
        return list(self._docs)


class FakeCollection:
    def __init__(self):
        self.docs = []

    async def insert_one(self, doc):
        # Motor sets _id on the caller's dict
        doc["_id"] = uuid.uuid4().hex
        self.docs.append(copy.deepcopy(doc))
        return _Result(inserted_id=doc["_id"])

    async def find_one(self, query=None, projection=None):
        for doc in self.docs:
            if _matches(doc, query or {}):
                return _project(doc, projection)
        return None

    def find(self, query=None, projection=None):
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, query or {})])

    async def update_one(self, query, update):
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(copy.deepcopy(update.get("$set", {})))
                return _Result(matched_count=1, modified_count=1)
        return _Result(matched_count=0, modified_count=0)

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return _Result(deleted_count=1)
        return _Result(deleted_count=0)

    async def delete_many(self, query):
        kept = [d for d in self.docs if not _matches(d, query)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return _Result(deleted_count=deleted)

    async def count_documents(self, query):
        return sum(1 for d in self.docs if _matches(d, query))

    async def distinct(self, key):
        values = []
        for doc in self.docs:
            value = doc.get(key)
            if value is not None and value not in values:
                values.append(value)
        return values


class FakeDB:
    def __init__(self):
        self._collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self._collections.setdefault(name, FakeCollection())

    def __getitem__(self, name):
        return getattr(self, name)


# Every module that did `from config import db`
DB_MODULES = [
    "config",
    "routes.auth",
    "routes.projects",
    "routes.tasks",
    "routes.dependencies",
    "routes.timesheets",
    "routes.event_log",
    "services.audit",
]


@pytest.fixture
def fake_db(monkeypatch):
    import importlib
    db = FakeDB()
    for name in DB_MODULES:
        monkeypatch.setattr(importlib.import_module(name), "db", db)
    return db


# ═══════════════════════════════════════════════════════════════
# USERS / CLIENTS
# ═══════════════════════════════════════════════════════════════

def make_user(role, user_id=None, email=None):
    return {
        "id": user_id or f"u-{role}",
        "email": email or f"{role}@example.it",
        "full_name": role.capitalize(),
        "role": role,
        "permissions": get_preset_permissions(role),
        "is_active": True,
    }


ADMIN = make_user("admin")
MODERATOR = make_user("moderator")
USER = make_user("user")
OTHER_USER = make_user("user", user_id="u-other", email="other@example.it")


@pytest.fixture
def app(fake_db):
    from server import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client_as(app):
    """client_as(USER) -> TestClient authenticated as USER"""
    from routes.auth import get_current_user

    def _client(user):
        app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    return _client
