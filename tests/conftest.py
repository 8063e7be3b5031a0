import pytest
from fastapi.testclient import TestClient

from peerpresence.auth.verify import get_current_person_id, get_optional_person_id
from tests.support import PERSON_A, FakeConversationStore


@pytest.fixture
def conversation_store(monkeypatch):
    store = FakeConversationStore()
    monkeypatch.setattr("peerpresence.services.conversation_service.ConversationRepository", store)
    return store


@pytest.fixture
def api_app():
    from peerpresence.main import api

    yield api
    api.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    """TestClient authenticated as PERSON_A. Lifespan is not run, so no database."""
    api_app.dependency_overrides[get_current_person_id] = lambda: PERSON_A
    api_app.dependency_overrides[get_optional_person_id] = lambda: PERSON_A
    return TestClient(api_app)


@pytest.fixture
def anonymous_client(api_app):
    return TestClient(api_app)
