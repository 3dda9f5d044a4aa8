# nebchat/infra/llm/base.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .channel import TokenChannel

@dataclass
class ChatMessage:
    role: str   # "user" | "assistant" | "system"
    content: str


@dataclass
class ChatOptions:
    model: str
    temperature: float = 0.7
    top_p: float = 0.9
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    seed: Optional[int] = None   # 0 and None both mean "let the provider pick"
    raw: bool = False            # send model + messages only


class ModelClient:
    """Abstract client."""
    def list_models(self) -> List[str]:
        raise NotImplementedError

    def send(self, messages: Sequence[ChatMessage], options: ChatOptions, *, timeout: float | None = None) -> str:
        raise NotImplementedError

    def send_stream(self, messages: Sequence[ChatMessage], options: ChatOptions, channel: "TokenChannel") -> None:
        raise NotImplementedError
