# Task board — configuration
# Override paths and storage via taskboard.yaml, TASKBOARD_CONFIG or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from .persistence import DEFAULT_STORAGE_KEY, Backend, FileBackend, MemoryBackend, SqliteBackend

CONFIG_PATH = Path(__file__).parent.parent / "taskboard.yaml"
STORAGE_BACKENDS = ("file", "sqlite", "memory")


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


@dataclass
class BoardConfig:
    """Runtime configuration for the task board."""

    # Storage
    storage: str = "file"                         # "file" | "sqlite" | "memory"
    state_path: str = "~/.local/share/taskboard/board.json"
    db_path: str = "~/.local/share/taskboard/board.db"
    storage_key: str = DEFAULT_STORAGE_KEY        # sqlite row key

    # Behavior
    normalize_text: bool = False                  # accent normalization on load

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    def resolve_paths(self):
        """Expand ~ in storage paths and check the backend name."""
        if self.storage not in STORAGE_BACKENDS:
            raise ConfigError(
                f"Unknown storage backend '{self.storage}'. "
                f"Available: {', '.join(STORAGE_BACKENDS)}"
            )
        self.state_path = str(Path(self.state_path).expanduser())
        self.db_path = str(Path(self.db_path).expanduser())

    @classmethod
    def load(cls, path: Optional[str] = None) -> "BoardConfig":
        """Load config from YAML file, falling back to defaults."""
        path = path or os.environ.get("TASKBOARD_CONFIG")
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            with open(cfg_path, "r") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Cannot parse {cfg_path}: {e}")
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path} must contain a mapping")
            cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        else:
            cfg = cls()
        cfg.resolve_paths()
        return cfg


def build_backend(cfg: BoardConfig) -> Backend:
    """Construct the persistence backend named by ``cfg.storage``."""
    if cfg.storage == "sqlite":
        return SqliteBackend(cfg.db_path, cfg.storage_key)
    if cfg.storage == "memory":
        return MemoryBackend()
    return FileBackend(cfg.state_path)
