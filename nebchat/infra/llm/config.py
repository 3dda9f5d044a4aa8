# nebchat/infra/llm/config.py
from __future__ import annotations
import os
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Tuple

from nebchat.constants import DEFAULT_MODEL_PREFIXES
from .errors import ConfigurationError

_NON_WORD = re.compile(r"[\s\-]+")


def build_env_variable_prefix(vendor_name: str) -> str:
    """'Nebius' -> 'NEBIUS_', 'Nebius AI-Studio' -> 'NEBIUS_AI_STUDIO_'."""
    return _NON_WORD.sub("_", vendor_name.strip()).upper() + "_"


@dataclass(frozen=True)
class ClientConfig:
    vendor_name: str
    api_key: str = field(default="", repr=False)
    base_url: str = ""
    model_prefixes: Tuple[str, ...] = DEFAULT_MODEL_PREFIXES

    @property
    def env_prefix(self) -> str:
        return build_env_variable_prefix(self.vendor_name)

    @classmethod
    def from_env(
        cls,
        vendor_name: str,
        default_base_url: str = "",
        *,
        model_prefixes: Optional[Sequence[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ClientConfig":
        env = os.environ if environ is None else environ
        prefix = build_env_variable_prefix(vendor_name)
        return cls(
            vendor_name=vendor_name,
            api_key=env.get(prefix + "API_KEY", "").strip(),
            base_url=env.get(prefix + "API_BASE_URL", "").strip() or default_base_url,
            model_prefixes=tuple(model_prefixes) if model_prefixes is not None else DEFAULT_MODEL_PREFIXES,
        )

    def validate(self) -> "ClientConfig":
        if not self.api_key:
            raise ConfigurationError(
                f"{self.vendor_name}: API key is required (set {self.env_prefix}API_KEY)"
            )
        return self
