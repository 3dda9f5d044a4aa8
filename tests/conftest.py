from __future__ import annotations

import logging
import sys
from types import SimpleNamespace
from typing import Any, Iterable, List

import pytest

from nebchat.infra.llm.config import ClientConfig
from nebchat.infra.llm.openai_client import OpenAICompatibleClient


def chunk(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(index=0, delta=SimpleNamespace(content=text))])


def empty_chunk() -> SimpleNamespace:
    return SimpleNamespace(choices=[])


def completion(text: str | None, fingerprint: str = "fp_test") -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(index=0, message=SimpleNamespace(role="assistant", content=text))],
        system_fingerprint=fingerprint,
    )


class FakeStream:
    """Iterates chunks; an exception instance in the list is raised at that point."""

    def __init__(self, items: Iterable[Any]):
        self.items = list(items)
        self.closed = False

    def __iter__(self):
        for item in self.items:
            if isinstance(item, BaseException):
                raise item
            yield item

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


class FakeCompletions:
    def __init__(self):
        self.calls: List[dict] = []
        self.result: Any = None
        self.error: BaseException | None = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


class FakeModels:
    def __init__(self):
        self.ids: List[str] = []
        self.error: BaseException | None = None

    def list(self):
        if self.error is not None:
            raise self.error
        return [SimpleNamespace(id=i, object="model") for i in self.ids]


class FakeApiClient:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)
        self.models = FakeModels()


@pytest.fixture
def fake_api() -> FakeApiClient:
    return FakeApiClient()


@pytest.fixture
def client(fake_api: FakeApiClient) -> OpenAICompatibleClient:
    cfg = ClientConfig(vendor_name="Nebius", api_key="sk-test", base_url="https://api.example.test/v1")
    return OpenAICompatibleClient(cfg, api_client=fake_api)


@pytest.fixture(autouse=True)
def _restore_logging():
    # init_logging() replaces root handlers and sys.excepthook
    root = logging.getLogger()
    handlers, level, hook = list(root.handlers), root.level, sys.excepthook
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
    sys.excepthook = hook
