"""
Pytest configuration and shared fixtures
"""
import os
import sys
import pytest
from datetime import date, datetime
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Fixed "today" so seeded due dates and aging buckets are stable
TODAY = date(2024, 8, 1)


class FakeAIService:
    """
    Stands in for ai_service.AIService. Records every call and answers with
    whatever the test queued.
    """

    def __init__(self, structured=None, stream_chunks=None, claude=True, search=False,
                 search_response=None, error=None):
        self.structured = structured or {}
        self.stream_chunks = stream_chunks or []
        self.claude = claude
        self.search = search
        self.search_response = search_response or {'answer': '', 'results': []}
        self.error = error
        self.calls = []

    def is_available(self, service):
        if service == 'claude':
            return self.claude
        if service == 'search':
            return self.search
        return False

    def _check(self):
        from ai_service import AIServiceUnavailable
        if not self.claude:
            raise AIServiceUnavailable("Anthropic Claude is not configured")
        if self.error:
            raise self.error

    def generate_structured(self, prompt, schema, tool_name, system=None, description=None):
        self.calls.append({'type': 'structured', 'prompt': prompt, 'schema': schema,
                           'tool_name': tool_name, 'system': system})
        self._check()
        return self.structured

    def stream_text(self, prompt, on_chunk, system=None):
        self.calls.append({'type': 'stream', 'prompt': prompt, 'system': system})
        self._check()
        for chunk in self.stream_chunks:
            on_chunk(chunk)
        return ''.join(self.stream_chunks)

    def web_search(self, query, max_results=None):
        self.calls.append({'type': 'search', 'query': query})
        return self.search_response


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def test_env_vars():
    """Fixture providing test environment variables"""
    original_env = os.environ.copy()

    os.environ['FLASK_ENV'] = 'testing'
    os.environ['SECRET_KEY'] = 'a3f1c9e07b5d42e8a6c1f0b9d7e25c43'
    os.environ['ANTHROPIC_API_KEY'] = 'test-anthropic-key'

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def app(app_config):
    """Flask app built by the factory with the testing config and seeded store"""
    from app_init import create_app
    flask_app = create_app(app_config)
    flask_app.ai_service = FakeAIService(claude=False)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.services


@pytest.fixture
def fake_ai(app):
    """Swap in a configured fake AI service; tests fill in the response"""
    fake = FakeAIService()
    app.ai_service = fake
    return fake


@pytest.fixture
def store():
    """A seeded store on its own, without a Flask app"""
    from database import MockStore, seed_store
    mock_store = MockStore(latency_ms=0)
    seed_store(mock_store, today=datetime(2024, 7, 29, 8, 0))
    return mock_store


@pytest.fixture
def container(store):
    """Services over the standalone store, with a fixed today"""
    from services import ServiceContainer
    container = ServiceContainer(store)
    container.billing.today = lambda: TODAY
    container.inventory.today = lambda: TODAY
    container.kpis.today = lambda: TODAY
    return container
