import pytest
from fastapi.testclient import TestClient

from backend.app.api.deps import get_session_manager
from backend.app.core.config import RelayConfig, UNLIMITED
from backend.app.core.errors import UpstreamError
from backend.app.db.memory import InMemoryRecordStore
from backend.app.main import app
from backend.app.services.session_manager import SessionManager

SESSION_KEY = "session-alpha-0001"

MODEL_REPLY = {
    "candidates": [
        {"content": {"role": "model", "parts": [{"text": "Hello from the model"}]}, "finishReason": "STOP"}
    ]
}


class FakeUpstream:
    """Records generate() calls; replies with `response` or raises `error`."""

    def __init__(self, response=None, error: UpstreamError = None):
        self.response = response if response is not None else MODEL_REPLY
        self.error = error
        self.calls = []

    async def generate(self, model, contents, policy, credential, tools=None):
        self.calls.append({
            "model": model, "contents": contents, "policy": policy,
            "credential": credential, "tools": tools,
        })
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def config():
    return RelayConfig(
        default_quota=3,
        redeem_codes={"GEMINI-FOR-ALL": UNLIMITED, "BLUE-GEM-A8C5": 5, "CYAN-ROCK-B6D2": 5},
        supported_models=("gemini-1.5-flash-latest", "gemini-1.5-pro-latest"),
        default_model="gemini-1.5-flash-latest",
        multimodal_model="gemini-1.5-flash-latest",
        default_credential="server-key",
    )


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def manager(store, config, upstream):
    return SessionManager(store=store, config=config, upstream=upstream)


@pytest.fixture
def client(manager):
    app.dependency_overrides[get_session_manager] = lambda: manager
    test_client = TestClient(app)
    test_client.cookies.set("userID", SESSION_KEY)
    yield test_client
    app.dependency_overrides.clear()


def user_turn(text="Hi"):
    return {"role": "user", "parts": [{"text": text}]}
