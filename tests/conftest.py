import copy
import io
import itertools
import os
from collections import namedtuple

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["MONGO_TRANSACTIONS"] = "false"
os.environ["MONGO_DB_NAME"] = "social-chat-test"
os.environ["APP_ENV"] = "test"

import cloudinary.uploader  # noqa: E402
import pytest  # noqa: E402
from fastapi import UploadFile  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from mongomock.collection import Collection as MongoMockCollection  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402
from pymongo.errors import OperationFailure  # noqa: E402

from social_chat.configs import settings  # noqa: E402
from social_chat.models import User, database, init_db  # noqa: E402
from social_chat.models.friend_request import ACCEPTED  # noqa: E402
from social_chat.services import FriendshipService  # noqa: E402

# Users created by the factory never log in, so skip bcrypt
FAKE_HASH = "not-a-real-hash"


@pytest.fixture
async def db():
    """Fresh in-memory MongoDB with indexes built, one per test."""
    client = AsyncMongoMockClient()
    await init_db(client)
    yield client


@pytest.fixture(autouse=True)
def blob_store(monkeypatch):
    """Replace Cloudinary with an in-process fake that records calls."""
    store = {"uploaded": [], "destroyed": []}
    counter = itertools.count(1)

    def fake_upload(file, resource_type=None, folder=None):
        public_id = f"{folder}/blob-{next(counter)}"
        store["uploaded"].append(public_id)
        return {
            "secure_url": f"https://res.cloudinary.example.com/{public_id}.png",
            "public_id": public_id,
            "format": "png",
            "bytes": 4,
        }

    def fake_destroy(public_id):
        store["destroyed"].append(public_id)
        return {"result": "ok"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)
    return store


@pytest.fixture
def make_image():
    def _make_image(filename: str = "icon.png", content: bytes = b"\x89PNG") -> UploadFile:
        return UploadFile(file=io.BytesIO(content), filename=filename, size=len(content))

    return _make_image


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    async def _make_user(*, name: str | None = None, email: str | None = None) -> User:
        n = next(counter)
        user = User(
            email=email or f"user{n}@example.com",
            hashedPassword=FAKE_HASH,
            name=name or f"User {n}",
        )
        await user.insert()
        return user

    return _make_user


@pytest.fixture
def befriend(db):
    """Make two users friends through the real request/accept path."""

    async def _befriend(sender: User, receiver: User):
        request = await FriendshipService.send_friend_request(str(sender.id), str(receiver.id), str(sender.id))
        return await FriendshipService.update_friend_request(str(request.id), str(receiver.id), ACCEPTED)

    return _befriend


@pytest.fixture
def reload(db):
    async def _reload(user: User) -> User:
        return await User.get(user.id)

    return _reload


@pytest.fixture
def caller():
    """Mutable holder for the id the HTTP layer treats as authenticated."""
    return {"id": None}


@pytest.fixture
async def api(db, caller):
    from social_chat.main import app
    from social_chat.security import get_current_user_id

    app.dependency_overrides[get_current_user_id] = lambda: caller["id"]
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def raw_api(db):
    """HTTP client without auth overrides, for token flows."""
    from social_chat.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


Write = namedtuple("Write", "collection method session")

WRITE_METHODS = (
    "insert_one",
    "insert_many",
    "update_one",
    "update_many",
    "replace_one",
    "delete_one",
    "delete_many",
    "find_one_and_update",
    "find_one_and_replace",
    "find_one_and_delete",
)


class FakeSession:
    """Runs the callback once like Motor's with_transaction and restores touched collections on error."""

    def __init__(self):
        self.snapshots = {}
        self.committed = False
        self.aborted = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def snapshot(self, store):
        if id(store) not in self.snapshots:
            self.snapshots[id(store)] = (store, copy.deepcopy(store._documents))

    async def with_transaction(self, callback):
        try:
            result = await callback(self)
        except Exception:
            for store, documents in self.snapshots.values():
                store._documents = documents
            self.aborted = True
            raise
        self.committed = True
        return result


class FakeTransactionClient:
    def __init__(self):
        self.sessions = []
        self.writes = []
        # 1-based index into `writes` of the write that should fail
        self.fail_on_write = None

    async def start_session(self):
        session = FakeSession()
        self.sessions.append(session)
        return session


@pytest.fixture
def transactions(db, monkeypatch):
    """Enable the transaction path with a client that records every write and its session."""
    fake = FakeTransactionClient()
    monkeypatch.setattr(settings, "MONGO_TRANSACTIONS", True)
    monkeypatch.setattr(database, "client", fake)

    def recording(method, original):
        def write(self, *args, session=None, **kwargs):
            fake.writes.append(Write(self.name, method, session))
            if session is not None:
                session.snapshot(self._store)
            if fake.fail_on_write == len(fake.writes):
                raise OperationFailure("simulated write failure")
            # mongomock refuses sessions, the fake session has done its part
            return original(self, *args, **kwargs)

        return write

    for method in WRITE_METHODS:
        monkeypatch.setattr(MongoMockCollection, method, recording(method, getattr(MongoMockCollection, method)))
    return fake
