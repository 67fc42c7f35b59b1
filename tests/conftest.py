import json
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import Mock

import pytest
import requests

from src.config.settings import Settings


def build_response(
    status: int = 200,
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
    json_body: Any = None,
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    if json_body is not None:
        body = json.dumps(json_body).encode("utf-8")
        headers = {"Content-Type": "application/json", **(headers or {})}
    resp._content = body
    resp.headers.update(headers or {})
    resp.encoding = "utf-8"
    return resp


class FakeSession:
    """
    Stand-in for requests.Session that records every outbound call.

    Responses are keyed by the kind of call: "token", "metadata", "media"
    or "export". A value may be an exception instance, which is raised.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        self.responses = dict(responses or {})
        self.calls: List[Dict[str, Any]] = []
        self.closed = 0

    @staticmethod
    def _kind(method: str, url: str, params: Optional[Dict[str, str]]) -> str:
        if method == "POST":
            return "token"
        if url.endswith("/export"):
            return "export"
        if params and params.get("alt") == "media":
            return "media"
        return "metadata"

    def _dispatch(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        kind = self._kind(method, url, kwargs.get("params"))
        self.calls.append({"method": method, "url": url, "kind": kind, **kwargs})
        if kind not in self.responses:
            raise AssertionError(f"unexpected {kind} call to {url}")
        result = self.responses[kind]
        if isinstance(result, BaseException):
            raise result
        return result

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self._dispatch("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self._dispatch("POST", url, **kwargs)

    def close(self) -> None:
        self.closed += 1

    def kinds(self) -> List[str]:
        return [call["kind"] for call in self.calls]


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values = {
            "GOOGLE_CLIENT_ID": "client-id",
            "GOOGLE_CLIENT_SECRET": "client-secret",
            "GOOGLE_REFRESH_TOKEN": "standing-refresh-token",
            "OPENAI_API_KEY": "sk-test-key",
            "OPENAI_API_BASE": None,
            "HTTP_TIMEOUT_SECONDS": 5.0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def response():
    return build_response


@pytest.fixture
def fake_session() -> Callable[..., FakeSession]:
    return FakeSession


@pytest.fixture
def openai_client() -> Mock:
    client = Mock()
    created = Mock()
    created.id = "file-abc123"
    created.model_dump.return_value = {
        "id": "file-abc123",
        "object": "file",
        "bytes": 11,
        "filename": "report.pdf",
        "purpose": "assistants",
    }
    client.files.create.return_value = created
    return client
