# nebchat/infra/llm/backend_adapter.py
from __future__ import annotations
import threading
from typing import Callable, Iterator, List, Optional
from .base import ModelClient, ChatMessage, ChatOptions
from .channel import TokenChannel
from .errors import StreamInterruptedError

MessagesBuilder = Callable[[str], List[ChatMessage]]
StopFn          = Callable[[], bool]


def user_prompt(system: Optional[str] = None) -> MessagesBuilder:
    def build(prompt: str) -> List[ChatMessage]:
        msgs = [ChatMessage(role="system", content=system)] if system else []
        msgs.append(ChatMessage(role="user", content=prompt))
        return msgs
    return build


def make_stream_func_from_client(
    client: ModelClient,
    *,
    options: ChatOptions,
    build_messages: Optional[MessagesBuilder] = None,
    maxsize: int = 0,
    poll_interval: float = 0.1,
) -> Callable[..., Iterator[str]]:
    """
    Returns a StreamFunc(prompt, *, stop_fn) -> Iterator[str].

    send_stream() runs on a worker thread and fills a TokenChannel; the
    returned generator drains it. A producer that dies without closing the
    channel (mid-stream failure) raises StreamInterruptedError after the
    fragments it did deliver. Errors raised while opening the stream are
    re-raised in the consumer.
    """
    build = build_messages or user_prompt()

    def stream(prompt: str, *, stop_fn: StopFn = lambda: False) -> Iterator[str]:
        msgs    = build(prompt)
        channel = TokenChannel(maxsize)
        failure: List[BaseException] = []

        def produce() -> None:
            try:
                client.send_stream(msgs, options, channel)
            except Exception as exc:
                failure.append(exc)

        worker = threading.Thread(target=produce, name="llm-stream", daemon=True)
        worker.start()
        try:
            while not stop_fn():
                try:
                    token = channel.get(timeout=poll_interval)
                except TimeoutError:
                    if worker.is_alive():
                        continue
                    # producer is gone; whatever it left is all there will be
                    yield from channel.drain()
                    if failure:
                        raise failure[0]
                    if not channel.closed:
                        raise StreamInterruptedError("producer stopped without closing the stream")
                    return
                if token is None:
                    return
                yield token
        finally:
            # unblocks a producer waiting on a full channel
            channel.close()
    return stream
