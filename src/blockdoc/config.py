"""Configuration loader for blockdoc.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigError

BACKENDS = ("sqlite", "yaml", "memory")
ID_STRATEGIES = ("nanoid", "sequential")


@dataclass
class StorageConfig:
    """Where documents live."""
    backend: str
    root: Path
    db: Path


@dataclass
class EditorConfig:
    """Edit session behaviour."""
    autosave_delay_ms: int = 3000
    saving_indicator_ms: int = 500
    id_strategy: str = "nanoid"
    id_size: int = 21


@dataclass
class ServerConfig:
    """JSON API server settings."""
    host: str = "127.0.0.1"
    port: int = 8765
    cors: bool = False


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class BlockdocConfig:
    """Complete blockdoc configuration."""
    storage: StorageConfig
    editor: EditorConfig
    server: ServerConfig
    logging: LoggingConfig


def load_config(config_path: Path | None = None, storage_root: Path | None = None) -> BlockdocConfig:
    """
    Load configuration from blockdoc.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/blockdoc.toml
    3. storage_root/blockdoc.toml

    Args:
        config_path: Explicit path to config file
        storage_root: Document storage directory for fallback search

    Returns:
        BlockdocConfig with resolved settings

    Raises:
        ConfigError: unknown backend or id strategy, non-positive delays
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / "blockdoc.toml")
    if storage_root:
        search_paths.append(storage_root / "blockdoc.toml")

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    # Parse storage config
    storage_data = toml_data.get("storage", {})
    root = Path(storage_data.get("root", storage_root or Path("./documents")))
    backend = storage_data.get("backend", "sqlite")
    if backend not in BACKENDS:
        raise ConfigError(f"storage.backend must be one of {', '.join(BACKENDS)}, got {backend!r}")
    storage_config = StorageConfig(
        backend=backend,
        root=root,
        db=Path(storage_data.get("db", root / "blockdoc.sqlite")),
    )

    # Parse editor config
    editor_data = toml_data.get("editor", {})
    editor_config = EditorConfig(
        autosave_delay_ms=int(editor_data.get("autosave_delay_ms", 3000)),
        saving_indicator_ms=int(editor_data.get("saving_indicator_ms", 500)),
        id_strategy=editor_data.get("id_strategy", "nanoid"),
        id_size=int(editor_data.get("id_size", 21)),
    )
    if editor_config.id_strategy not in ID_STRATEGIES:
        raise ConfigError(
            f"editor.id_strategy must be one of {', '.join(ID_STRATEGIES)}, "
            f"got {editor_config.id_strategy!r}"
        )
    if editor_config.autosave_delay_ms <= 0:
        raise ConfigError("editor.autosave_delay_ms must be positive")

    # Parse server config
    server_data = toml_data.get("server", {})
    server_config = ServerConfig(
        host=server_data.get("host", "127.0.0.1"),
        port=int(server_data.get("port", 8765)),
        cors=bool(server_data.get("cors", False)),
    )

    logging_data = toml_data.get("logging", {})
    logging_config = LoggingConfig(level=str(logging_data.get("level", "WARNING")).upper())

    return BlockdocConfig(
        storage=storage_config,
        editor=editor_config,
        server=server_config,
        logging=logging_config,
    )
