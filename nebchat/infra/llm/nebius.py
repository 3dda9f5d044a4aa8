# nebchat/infra/llm/nebius.py
from __future__ import annotations
from typing import Any

from nebchat.constants import DEFAULT_VENDOR_NAME, DEFAULT_BASE_URL
from .openai_client import OpenAICompatibleClient, new_client_compatible


def new_client(**kwargs: Any) -> OpenAICompatibleClient:
    """Nebius AI Studio adapter; reads NEBIUS_API_KEY / NEBIUS_API_BASE_URL."""
    return new_client_compatible(DEFAULT_VENDOR_NAME, DEFAULT_BASE_URL, **kwargs)
