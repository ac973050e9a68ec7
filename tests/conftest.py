from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from blinky.api import create_app
from blinky.core.config import Config
from blinky.core.db import close_db, init_db
from blinky.core.task_manager import TaskManager
from blinky.plugins.composer import NotificationComposer
from blinky.plugins.push import PushDispatcher, PushGateway


class FakeGateway(PushGateway):
    """Records every batch; tokens listed in error_tokens get an error ticket."""

    def __init__(self, batch_size=100, error_tokens=()):
        self.batch_size = batch_size
        self.error_tokens = set(error_tokens)
        self.batches = []

    @property
    def sent(self):
        return [m for batch in self.batches for m in batch]

    def send_batch(self, messages):
        self.batches.append(list(messages))
        tickets = []
        for i, m in enumerate(messages):
            if m.to in self.error_tokens:
                tickets.append({"status": "error", "message": "DeviceNotRegistered", "details": {"error": "DeviceNotRegistered"}})
            else:
                tickets.append({"status": "ok", "id": f"ticket-{len(self.batches)}-{i}"})
        return tickets


class FakeAIClient:
    """Stands in for anthropic.Anthropic: client.messages.create(...) returns text blocks or raises."""

    def __init__(self, text="Your essay is due and TikTok is not going to write it 🦉", error=None):
        self.text = text
        self.error = error
        self.calls = []
        self.messages = SimpleNamespace(create=self._create)

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


@pytest.fixture
def db(tmp_path):
    init_db(db_url=f"sqlite:///{tmp_path / 'test.db'}")
    yield
    close_db()


@pytest.fixture
def ai_client():
    return FakeAIClient()


@pytest.fixture
def composer(ai_client):
    return NotificationComposer(client=ai_client, model="test-model")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def dispatcher(gateway):
    return PushDispatcher(gateway)


@pytest.fixture
def blinky_app(tmp_path, db, composer, dispatcher):
    task_manager = TaskManager()
    app = SimpleNamespace(
        config=Config(config_path=str(tmp_path / "config.yaml")),
        task_manager=task_manager,
        composer=composer,
        dispatcher=dispatcher,
    )
    yield app
    task_manager.stop()


@pytest.fixture
def client(blinky_app):
    with TestClient(create_app(blinky_app), raise_server_exceptions=False) as c:
        yield c
