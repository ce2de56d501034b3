import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from jaromind.auth.tokens import ROLE_ADMIN, TokenService
from jaromind.config import Settings
from jaromind.database import create_indexes
from jaromind.main import create_app


# ==================== ASYNC STORE ADAPTER ====================
# Motor-shaped async facade over mongomock so services run unchanged.

class AsyncCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, count):
        self._cursor = self._cursor.skip(count)
        return self

    def limit(self, count):
        self._cursor = self._cursor.limit(count)
        return self

    async def to_list(self, length=None):
        docs = list(self._cursor)
        return docs if length is None else docs[:length]


class AsyncCollection:
    def __init__(self, collection):
        self.sync = collection

    def find(self, *args, **kwargs):
        return AsyncCursor(self.sync.find(*args, **kwargs))

    def aggregate(self, pipeline, **kwargs):
        return AsyncCursor(self.sync.aggregate(pipeline, **kwargs))

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        attr = getattr(self.sync, name)
        if not callable(attr):
            return attr

        async def call(*args, **kwargs):
            return attr(*args, **kwargs)
        return call


class AsyncDatabase:
    def __init__(self, database):
        self.sync = database
        self.name = database.name

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name):
        return AsyncCollection(self.sync[name])


# ==================== FIXTURES ====================

@pytest.fixture
def settings():
    return Settings(jwt_secret="test-secret", db_name="jaromind_test", cors_origins=["http://testserver"])


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def mongo():
    """Store without indexes; the app creates them on startup"""
    return AsyncDatabase(mongomock.MongoClient()["jaromind_test"])


@pytest.fixture
async def db(mongo):
    await create_indexes(mongo)
    return mongo


@pytest.fixture
def client(mongo, settings):
    app = create_app(settings, db=mongo)
    with TestClient(app) as test_client:
        yield test_client


# ==================== HELPERS ====================

def new_user_id() -> str:
    return str(ObjectId())


def auth_headers(tokens: TokenService, user_id: str = None, role: str = "user", name: str = "Test User") -> dict:
    user_id = user_id or new_user_id()
    if role == ROLE_ADMIN:
        token = tokens.issue_admin(user_id, "admin@jaromind.com", name=name)
    else:
        token = tokens.issue(user_id, f"{user_id}@example.com", name=name)
    return {"Authorization": f"Bearer {token}"}
