"""
Shared fixtures for the frame layout service tests.

Provides a fake image loader, a fresh editor per test and an HTTP client
bound to a throwaway SQLite template store.
"""
import os
import tempfile

# Point the template store at a throwaway database before the app is imported
_DB_DIR = tempfile.mkdtemp(prefix="frame-layout-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'templates.db')}"

import asyncio

import pytest

from app.domain.editor_service import EditorService
from app.domain.errors import InvalidSource


class FakeLoader:
    """Resolves sources from a fixed size table; unknown sources are invalid.

    Set ``gate`` to an ``asyncio.Event`` to hold completions until released.
    """

    def __init__(self, sizes=None):
        self.sizes = dict(sizes or {})
        self.requests = []
        self.gate = None

    async def resolve_size(self, src):
        self.requests.append(src)
        if self.gate is not None:
            await self.gate.wait()
        if src not in self.sizes:
            raise InvalidSource(f"unknown source {src}")
        return self.sizes[src]


SIZES = {
    "photo-200x100.png": (200, 100),
    "portrait-300x600.png": (300, 600),
    "bg-1600x800.jpg": (1600, 800),
    "bg-600x600.jpg": (600, 600),
}


@pytest.fixture
def loader():
    return FakeLoader(SIZES)


@pytest.fixture
def editor(loader):
    return EditorService(loader=loader, canvas_width=1200, canvas_height=800)


@pytest.fixture
def run():
    """Run a coroutine function to completion on a fresh event loop."""
    def _run(coro_fn, *args, **kwargs):
        return asyncio.run(coro_fn(*args, **kwargs))
    return _run


@pytest.fixture
def sample_document():
    return {
        "version": 1,
        "canvas": {"width": 1000, "height": 600},
        "background": "bg-1600x800.jpg",
        "frames": [
            {"id": "f-1", "x": 40, "y": 60, "w": 400, "h": 300, "fit": "cover", "name": "Left"},
            {"id": "f-2", "x": 520, "y": 60, "w": 420.5, "h": 260, "fit": "contain", "name": "Right"},
            {"id": "f-3", "x": 0, "y": 400, "w": 20, "h": 20, "fit": "cover", "name": "Tiny"},
        ],
    }


@pytest.fixture
def client(loader):
    from fastapi.testclient import TestClient
    from app.main import app

    with TestClient(app) as c:
        c.app.state.editor.loader = loader
        yield c
