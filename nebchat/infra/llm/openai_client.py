# nebchat/infra/llm/openai_client.py
from __future__ import annotations
import logging
import threading
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx
from openai import OpenAI

from .base import ModelClient, ChatMessage, ChatOptions
from .channel import TokenChannel
from .config import ClientConfig
from .errors import ChannelClosedError

log = logging.getLogger("llm")

MISSING_API_KEY = "missing-api-key"


def is_allowed_model(model_id: str, prefixes: Sequence[str]) -> bool:
    # Case-sensitive; this is a naming convention check, not a capability check.
    return any(model_id.startswith(p) for p in prefixes)


class OpenAICompatibleClient(ModelClient):
    """
    Adapter for vendors that expose an OpenAI-compatible chat completions API.

    The `openai.OpenAI` handle is built on first use and shared by every call;
    it is safe to use from several threads at once.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        api_client: Any = None,
        http_client: httpx.Client | None = None,
        close_on_stream_error: bool = False,
    ):
        self.config = config
        self.close_on_stream_error = close_on_stream_error
        self._http_client = http_client
        self._api_client = api_client
        self._lock = threading.Lock()

    @property
    def vendor_name(self) -> str:
        return self.config.vendor_name

    # -------- setup --------
    def configure(self) -> OpenAI:
        # The SDK refuses an empty key at construction; the provider answers 401 instead.
        kwargs: Dict[str, Any] = {"api_key": self.config.api_key or MISSING_API_KEY}
        if self.config.base_url:
            kwargs["base_url"] = self.config.base_url
        if self._http_client is not None:
            kwargs["http_client"] = self._http_client
        self._api_client = OpenAI(**kwargs)
        log.debug("%s client configured (base_url=%s)", self.vendor_name, self.config.base_url or "<sdk default>")
        return self._api_client

    @property
    def api_client(self) -> Any:
        if self._api_client is None:
            with self._lock:
                if self._api_client is None:
                    self.configure()
        return self._api_client

    # -------- API --------
    def list_models(self) -> List[str]:
        page = self.api_client.models.list()
        return [m.id for m in page if is_allowed_model(m.id, self.config.model_prefixes)]

    def send(self, messages: Sequence[ChatMessage], options: ChatOptions, *, timeout: float | None = None) -> str:
        req = self.build_chat_completion_request(messages, options)
        req["stream"] = False
        if timeout is not None:
            req["timeout"] = timeout
        resp = self.api_client.chat.completions.create(**req)
        log.debug("SystemFingerprint: %s", getattr(resp, "system_fingerprint", None))
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    def send_stream(self, messages: Sequence[ChatMessage], options: ChatOptions, channel: TokenChannel) -> None:
        """
        Relay delta fragments into `channel` until the provider stream ends.

        The channel is closed after a trailing "\\n" when the stream ends (a
        chunk without choices, or the end of the SSE body). A failure while
        reading the body is logged and the channel is left open unless
        `close_on_stream_error` is set; consumers must not wait on closure alone.
        """
        req = self.build_chat_completion_request(messages, options)
        req["stream"] = True
        try:
            stream = self.api_client.chat.completions.create(**req)
        except Exception as exc:
            log.error("ChatCompletionStream error: %s", exc)
            raise

        with stream:
            try:
                for chunk in stream:
                    if not chunk.choices:
                        break
                    channel.put(chunk.choices[0].delta.content or "")
                channel.put("\n")
                channel.close()
            except ChannelClosedError:
                log.debug("Channel closed by consumer; dropping rest of stream")
            except Exception as exc:
                log.error("Stream error: %s", exc)
                if self.close_on_stream_error:
                    channel.close()

    # -------- internals --------
    def build_chat_completion_request(self, messages: Sequence[ChatMessage], options: ChatOptions) -> Dict[str, Any]:
        wire_messages = [
            {"role": m.role, "content": m.content}
            for m in messages
        ]
        req: Dict[str, Any] = {"model": options.model, "messages": wire_messages}
        if options.raw:
            return req

        req.update(
            temperature=float(options.temperature),
            top_p=float(options.top_p),
            presence_penalty=float(options.presence_penalty),
            frequency_penalty=float(options.frequency_penalty),
        )
        # seed=0 is treated as unset
        if options.seed:
            req["seed"] = int(options.seed)
        return req


def new_client_compatible(
    vendor_name: str,
    default_base_url: str,
    *,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    model_prefixes: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    **kwargs: Any,
) -> OpenAICompatibleClient:
    """Build an adapter from `<VENDOR>_API_KEY` / `<VENDOR>_API_BASE_URL`, explicit values winning."""
    cfg = ClientConfig.from_env(vendor_name, default_base_url, model_prefixes=model_prefixes, environ=environ)
    if api_key is not None or base_url is not None:
        cfg = replace(
            cfg,
            api_key=cfg.api_key if api_key is None else api_key,
            base_url=cfg.base_url if base_url is None else base_url,
        )
    return OpenAICompatibleClient(cfg, **kwargs)
