# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory stand-ins for the document store, blob storage and image
#   generator, wired into a real AppContext
# - A TestClient whose context dependency is overridden with that context
# - Access tokens signed with the test JWT secret
# =============================================================================

import copy
import os
import time

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

TEST_JWT_SECRET = "test-jwt-secret-for-hs256-tokens-only"

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import asyncio
from typing import Any

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.config import settings
from app.dependencies import get_context
from app.exceptions import StorageUploadError
from app.main import app
from app.websocket.manager import user_room
from core.context import AppContext
from lib.document_store import DocumentStore, split_path
from lib.image_generator import ImageGenerator

USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_USER_ID = "22222222-2222-4222-8222-222222222222"
BUSINESS_ID = "biz-1"


# =============================================================================
# In-Memory Collaborators
# =============================================================================

class InMemoryDocumentStore(DocumentStore):
    """Dict-backed DocumentStore with the same merge/delete semantics."""

    def __init__(self):
        self.documents: dict[str, dict[str, Any]] = {}
        self.fail_merges = False

    def peek(self, path):
        """Synchronous read for assertions."""
        document = self.documents.get(path)
        return copy.deepcopy(document) if document is not None else None

    def seed(self, path, data):
        """Synchronous write for fixtures."""
        self.documents[path] = copy.deepcopy(data)

    async def get(self, path):
        return self.peek(path)

    async def set(self, path, data):
        self.seed(path, data)
        return data

    async def set_many(self, documents):
        paths = [path for path, _ in documents]
        if len(set(paths)) != len(paths):
            # Postgres rejects an upsert that touches one row twice
            raise RuntimeError("ON CONFLICT DO UPDATE command cannot affect row a second time")
        for path, data in documents:
            self.seed(path, data)

    async def merge(self, path, patch):
        if self.fail_merges:
            raise RuntimeError("database unavailable")
        if path not in self.documents:
            return None
        self.documents[path].update(copy.deepcopy(patch))
        return self.peek(path)

    async def delete(self, path):
        return self.documents.pop(path, None) is not None

    async def delete_many(self, paths):
        return sum(1 for path in paths if self.documents.pop(path, None) is not None)

    async def query(self, collection, where=None, limit=None):
        results = []
        for path, data in self.documents.items():
            if split_path(path)[0] != collection:
                continue
            if any(data.get(field) != value for field, value in (where or {}).items()):
                continue
            results.append(copy.deepcopy(data))
        return results[:limit] if limit else results

    async def ping(self):
        return None


class InMemoryStorage:
    """Stands in for StorageService; objects are kept by path."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.fail_uploads = False

    async def upload_image(self, folder, content, filename, content_type="image/png"):
        if self.fail_uploads:
            raise StorageUploadError("bucket unavailable")
        path = f"{folder}/{len(self.objects)}-{filename}"
        self.objects[path] = content
        return path

    async def get_url(self, storage_path):
        return f"https://storage.test/{storage_path}?token=signed"

    async def delete_folder(self, folder):
        doomed = [path for path in self.objects if path.startswith(f"{folder}/")]
        for path in doomed:
            del self.objects[path]
        return len(doomed)

    async def ping(self):
        return None


class FakeImageGenerator(ImageGenerator):
    """Returns fixed bytes, raises `error`, or sleeps `delay` seconds."""

    def __init__(self):
        self.result = b"\x89PNG generated"
        self.error: Exception | None = None
        self.delay = 0.0
        self.calls: list[tuple[str, str]] = []

    async def generate(self, source_image_url, prompt):
        self.calls.append((source_image_url, prompt))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class FakeWebSocket:
    """Records every JSON message sent to it."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.accepted = False
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)

    def types(self) -> list[str]:
        return [message["type"] for message in self.sent]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def generator():
    return FakeImageGenerator()


@pytest.fixture
def context(store, storage, generator):
    """AppContext built from in-memory collaborators."""
    return AppContext(settings=settings, store=store, storage=storage, generator=generator)


@pytest.fixture
def owner_socket(context):
    """A websocket subscribed to the test user's room."""
    socket = FakeWebSocket()
    context.connections.join(user_room(USER_ID), socket)
    return socket


@pytest.fixture
def other_socket(context):
    """A websocket subscribed to a different user's room."""
    socket = FakeWebSocket()
    context.connections.join(user_room(OTHER_USER_ID), socket)
    return socket


@pytest.fixture
def business(context):
    """A business owned by the test user, created without publishing."""
    from core.models.business import Business
    from lib.document_store import business_path

    document = Business(
        business_id=BUSINESS_ID,
        name="Dana's Business",
        created_at="2025-01-01T00:00:00.000000Z",
        updated_at="2025-01-01T00:00:00.000000Z",
    ).model_dump(mode="json", by_alias=True)
    context.store.seed(business_path(USER_ID, BUSINESS_ID), document)
    return document


def make_token(
    uid: str = USER_ID,
    email: str | None = "dana@example.com",
    expires_in: int = 3600,
    secret: str = TEST_JWT_SECRET,
    **claims,
) -> str:
    """Mint a Supabase-style access token."""
    now = int(time.time())
    payload = {
        "sub": uid,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def token():
    return make_token()


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(context):
    """
    TestClient with the context dependency overridden.

    Not entered as a context manager, so the lifespan (which would build the
    Supabase and OpenAI clients) never runs.
    """
    app.dependency_overrides[get_context] = lambda: context
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
