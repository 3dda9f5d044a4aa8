from __future__ import annotations

import json

import httpx
import pytest
from openai import APIConnectionError

from conftest import FakeStream, chunk, completion
from nebchat import app
from nebchat.infra.llm.config import ClientConfig
from nebchat.infra.llm.openai_client import OpenAICompatibleClient


@pytest.fixture
def wired(fake_api, monkeypatch):
    seen = {}

    def factory(vendor_name, default_base_url, **kwargs):
        seen.update(kwargs, vendor_name=vendor_name, default_base_url=default_base_url)
        cfg = ClientConfig(vendor_name, api_key="sk-test", base_url=kwargs.get("base_url") or default_base_url)
        return OpenAICompatibleClient(cfg, api_client=fake_api)

    monkeypatch.setattr(app, "new_client_compatible", factory)
    return seen


def _run(tmp_path, *argv: str) -> int:
    return app.main(["--data-dir", str(tmp_path), "--no-console-log", *argv])


def test_missing_api_key_is_a_usage_error(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.delenv("NEBIUS_API_KEY", raising=False)

    assert _run(tmp_path, "--list-models") == 2
    assert "NEBIUS_API_KEY" in capsys.readouterr().err


def test_list_models(tmp_path, wired, fake_api, capsys) -> None:
    fake_api.models.ids = ["meta-llama/foo", "unknown-org/bar", "allenai/olmo"]

    assert _run(tmp_path, "--list-models") == 0
    assert capsys.readouterr().out.splitlines() == ["meta-llama/foo", "allenai/olmo"]
    assert wired["vendor_name"] == "Nebius"
    assert "meta-llama/" in wired["model_prefixes"]


def test_send_prints_completion(tmp_path, wired, fake_api, capsys) -> None:
    fake_api.completions.result = completion("pong")

    assert _run(tmp_path, "-m", "meta-llama/foo", "--system", "be brief", "--seed", "5", "ping") == 0

    assert capsys.readouterr().out == "pong\n"
    call = fake_api.completions.calls[0]
    assert call["messages"] == [{"role": "system", "content": "be brief"}, {"role": "user", "content": "ping"}]
    assert call["seed"] == 5


def test_raw_flag(tmp_path, wired, fake_api) -> None:
    fake_api.completions.result = completion("pong")

    assert _run(tmp_path, "-m", "m", "--raw", "ping") == 0
    assert set(fake_api.completions.calls[0]) == {"model", "messages", "stream"}


def test_stream_prints_fragments(tmp_path, wired, fake_api, capsys) -> None:
    fake_api.completions.result = FakeStream([chunk("po"), chunk("ng")])

    assert _run(tmp_path, "-m", "m", "--stream", "ping") == 0
    assert capsys.readouterr().out == "pong\n"


def test_interrupted_stream_exits_nonzero(tmp_path, wired, fake_api, capsys) -> None:
    fake_api.completions.result = FakeStream([chunk("po"), RuntimeError("reset")])

    assert _run(tmp_path, "-m", "m", "--stream", "ping") == 1
    out, err = capsys.readouterr()
    assert out == "po"
    assert "stream interrupted" in err


def test_stream_text_resembling_an_error_is_printed_verbatim(tmp_path, wired, fake_api, capsys) -> None:
    fake_api.completions.result = FakeStream([chunk("\n[error] stream interrupted\n")])

    assert _run(tmp_path, "-m", "m", "--stream", "ping") == 0
    out, err = capsys.readouterr()
    assert out == "\n[error] stream interrupted\n\n"
    assert err == ""


def test_invalid_settings_file_is_a_usage_error(tmp_path, wired, capsys) -> None:
    settings = tmp_path / "settings" / "nebchat.json"
    settings.parent.mkdir(parents=True)
    settings.write_text("{not json", encoding="utf-8")

    assert _run(tmp_path, "--list-models") == 2
    assert "not valid JSON" in capsys.readouterr().err


def test_settings_prefixes_reach_factory(tmp_path, wired, fake_api) -> None:
    settings = tmp_path / "settings" / "nebchat.json"
    settings.parent.mkdir(parents=True)
    settings.write_text(json.dumps({"vendor": {"model_prefixes": ["acme/", ""]}}), encoding="utf-8")
    fake_api.models.ids = []

    assert _run(tmp_path, "--list-models") == 0
    assert wired["model_prefixes"] == ("acme/",)


def test_provider_error_exits_one(tmp_path, wired, fake_api) -> None:
    fake_api.completions.error = APIConnectionError(request=httpx.Request("POST", "https://api.example.test"))
    assert _run(tmp_path, "-m", "m", "ping") == 1


def test_model_is_required(tmp_path, wired, capsys) -> None:
    assert _run(tmp_path, "ping") == 2
    assert "--model" in capsys.readouterr().err


def test_base_url_override_reaches_factory(tmp_path, wired, fake_api) -> None:
    fake_api.models.ids = []
    assert _run(tmp_path, "--list-models", "--base-url", "https://proxy.test/v1") == 0
    assert wired["base_url"] == "https://proxy.test/v1"
