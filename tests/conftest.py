"""Pytest configuration and fixtures."""

import os
import sys
import tempfile
import pytest
from typing import Any, Dict, Generator, List, Optional

import httpx

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


class FakeAnthropicClient:
    """Stands in for AnthropicClient; yields canned deltas and records calls."""

    def __init__(self, chunks: Optional[List[str]] = None, error: Optional[Exception] = None,
                 error_before_output: bool = False):
        self.chunks = chunks if chunks is not None else ["Looks ", "good ", "to me."]
        self.error = error
        self.error_before_output = error_before_output
        self.calls: List[Dict[str, Any]] = []
        self.closed = 0

    async def stream_text(self, messages, model=None, system_prompt=None):
        self.calls.append({"messages": messages, "model": model, "system_prompt": system_prompt})
        if self.error is not None and self.error_before_output:
            raise self.error
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed += 1


class FakeClientFactory:
    """client_factory replacement that hands out one FakeAnthropicClient."""

    def __init__(self, client: FakeAnthropicClient):
        self.client = client
        self.keys: List[str] = []

    def __call__(self, api_key: str) -> FakeAnthropicClient:
        self.keys.append(api_key)
        return self.client


PR_PAYLOAD = {
    "title": "Add caching layer",
    "body": "Caches expensive lookups.",
    "user": {"login": "octocat"},
    "additions": 12,
    "deletions": 3,
    "changed_files": 2,
}

PR_FILES_PAYLOAD = [
    {
        "filename": "src/app.py",
        "status": "modified",
        "additions": 10,
        "deletions": 3,
        "patch": "@@ -1,3 +1,10 @@\n-import os\n+import functools",
    },
    {
        "filename": "assets/logo.png",
        "status": "added",
        "additions": 2,
        "deletions": 0,
    },
]


class GitHubRecorder:
    """httpx MockTransport handler serving one canned pull request."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text='{"message": "Not Found"}')
        if request.url.path.endswith("/files"):
            return httpx.Response(200, json=PR_FILES_PAYLOAD)
        return httpx.Response(200, json=PR_PAYLOAD)


@pytest.fixture
def temp_data_dir() -> Generator[str, None, None]:
    """Create a temporary data directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def mock_env(monkeypatch):
    """Set up mock environment variables."""
    monkeypatch.setenv("MOCK_LLM", "1")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
    return monkeypatch


@pytest.fixture
def clean_env(monkeypatch):
    """No server-side credentials and no mock mode."""
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("MOCK_LLM", raising=False)
    return monkeypatch


@pytest.fixture
def credential_store(temp_data_dir):
    """Create a credential store in a temporary directory."""
    from services.credential_store import CredentialStore

    return CredentialStore(os.path.join(temp_data_dir, "credentials.json"))


@pytest.fixture
def github():
    """Recorder for GitHub API calls."""
    return GitHubRecorder()


@pytest.fixture
def pr_fetcher(github):
    """PR fetcher wired to the mock GitHub transport."""
    from services.github_client import GitHubClient, PRFetcher

    return PRFetcher(client=GitHubClient(transport=httpx.MockTransport(github)))


@pytest.fixture
def fake_client():
    return FakeAnthropicClient()


@pytest.fixture
def review_service(credential_store, pr_fetcher, fake_client, clean_env):
    """Review service with fake provider and mock GitHub."""
    from services.chat_state import ConversationStore
    from services.review_service import ReviewService

    return ReviewService(
        credential_store=credential_store,
        pr_fetcher=pr_fetcher,
        conversations=ConversationStore(),
        client_factory=FakeClientFactory(fake_client),
    )


@pytest.fixture
def client(temp_data_dir, pr_fetcher, fake_client, clean_env):
    """FastAPI TestClient with fake provider and mock GitHub."""
    from fastapi.testclient import TestClient

    import api.deps as deps
    from app import app

    deps.reset()
    deps.initialize_all(credentials_path=os.path.join(temp_data_dir, "credentials.json"))
    service = deps.get_review_service()
    service.client_factory = FakeClientFactory(fake_client)
    service.pr_fetcher = pr_fetcher
    deps._pr_fetcher = pr_fetcher

    with TestClient(app) as test_client:
        yield test_client

    deps.reset()
