import io
import json
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure the package is importable without installation when running tests locally
pkg_src = Path(__file__).resolve().parents[1] / "src"
if str(pkg_src) not in sys.path:
    sys.path.insert(0, str(pkg_src))

FIXTURES = Path(__file__).resolve().parent / "fixtures"


class FakeResponse(io.BytesIO):
    """Minimal stand-in for the object returned by ``urllib.request.urlopen``."""

    def __init__(self, payload: Any, status: int = 200) -> None:
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        super().__init__(body)
        self.status = status


class FakeUrlopen:
    """Record requests and answer them from a list of canned payloads."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[Any] = []
        self.timeouts: list[float | None] = []

    def __call__(self, req: Any, timeout: float | None = None) -> Any:
        self.requests.append(req)
        self.timeouts.append(timeout)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, FakeResponse):
            return item
        return FakeResponse(item)


@pytest.fixture()
def fixture_json():
    def _load(name: str) -> Any:
        return json.loads((FIXTURES / name).read_text())

    return _load


@pytest.fixture()
def fake_urlopen(monkeypatch: pytest.MonkeyPatch):
    """Patch ``urlopen`` in the shared HTTP helper with a :class:`FakeUrlopen`."""

    def _install(*responses: Any) -> FakeUrlopen:
        fake = FakeUrlopen(*responses)
        monkeypatch.setattr("stable_flow_lab.sources.http.urllib.request.urlopen", fake)
        return fake

    return _install
