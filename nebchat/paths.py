# nebchat/paths.py
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from .constants import APP_NAME, DEFAULT_LOG_FILENAME


def default_data_dir() -> Path:
    env = os.getenv("NEBCHAT_DATA_DIR")
    if env:
        return Path(env).expanduser().resolve()
    return Path("data").resolve()


@dataclass(frozen=True)
class DataLayout:
    """Where one nebchat installation keeps its log and settings files."""
    root: Path

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def log_file(self) -> Path:
        return self.logs_dir / DEFAULT_LOG_FILENAME

    @property
    def settings_file(self) -> Path:
        # Non-sensitive only; API keys stay in the environment.
        return self.root / "settings" / f"{APP_NAME}.json"

    def ensure(self) -> "DataLayout":
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.settings_file.parent.mkdir(parents=True, exist_ok=True)
        return self


def data_layout(data_dir: Optional[str | Path] = None) -> DataLayout:
    root = Path(data_dir).expanduser().resolve() if data_dir else default_data_dir()
    return DataLayout(root).ensure()
