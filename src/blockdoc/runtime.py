"""Runtime wiring helper for CLI and API applications."""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .adapters.fs_repo import YamlFileRepository
from .adapters.idgen import NanoId, SequentialId
from .adapters.memory_repo import MemoryRepository
from .adapters.sqlite_repo import SqliteRepository
from .config import BlockdocConfig, load_config
from .core.ports import DocumentRepository, IdGenerator
from .gateway import DocumentGateway
from .session import EditSession


@dataclass
class Runtime:
    """Container for all wired components."""
    repository: DocumentRepository
    gateway: DocumentGateway
    config: BlockdocConfig

    def new_idgen(
        self, existing_ids: Iterable[str] | None = None, next_block_id: int = 1
    ) -> IdGenerator:
        """Block id generator for one document under the configured strategy."""
        if self.config.editor.id_strategy == "sequential":
            return SequentialId.after(existing_ids or [], floor=next_block_id)
        return NanoId(size=self.config.editor.id_size)

    def open_session(self, document_id: int | None = None, **kwargs: Any) -> EditSession:
        """Open an edit session with the configured autosave timings."""
        document = self.gateway.open(document_id)
        kwargs.setdefault(
            "idgen", self.new_idgen([b.id for b in document.blocks], document.next_block_id)
        )
        kwargs.setdefault("autosave_delay_ms", self.config.editor.autosave_delay_ms)
        kwargs.setdefault("saving_indicator_ms", self.config.editor.saving_indicator_ms)
        return EditSession(document, gateway=self.gateway, **kwargs)


def build_repository(config: BlockdocConfig) -> DocumentRepository:
    backend = config.storage.backend
    if backend == "memory":
        return MemoryRepository()
    if backend == "yaml":
        return YamlFileRepository(config.storage.root)
    return SqliteRepository(db_path=config.storage.db)


def build_runtime(
    config_path: Path | None = None,
    storage_root: Path | None = None,
    backend: str | None = None,
) -> Runtime:
    """Build and wire all components."""
    config = load_config(config_path=config_path, storage_root=storage_root)

    # CLI args override config values
    if storage_root is not None:
        config.storage.root = storage_root
        config.storage.db = storage_root / "blockdoc.sqlite"
    if backend is not None:
        config.storage.backend = backend

    repository = build_repository(config)
    gateway = DocumentGateway(repository)
    runtime = Runtime(
        repository=repository,
        gateway=gateway,
        config=config,
    )
    # documents opened empty get their first block id from the same strategy
    gateway.idgen_factory = runtime.new_idgen
    return runtime
