"""Tests for runtime wiring."""

import tempfile
from pathlib import Path

import pytest

from blockdoc.adapters.fs_repo import YamlFileRepository
from blockdoc.adapters.idgen import NanoId, SequentialId
from blockdoc.adapters.memory_repo import MemoryRepository
from blockdoc.adapters.sqlite_repo import SqliteRepository
from blockdoc.core.editor import DeleteBlock, SplitAfter
from blockdoc.runtime import build_runtime


def test_build_runtime_backends():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        rt = build_runtime(config_path=root / "none.toml", storage_root=root)
        assert isinstance(rt.repository, SqliteRepository)
        assert rt.repository.db_path == root / "blockdoc.sqlite"

        rt = build_runtime(config_path=root / "none.toml", storage_root=root, backend="yaml")
        assert isinstance(rt.repository, YamlFileRepository)

        rt = build_runtime(config_path=root / "none.toml", storage_root=root, backend="memory")
        assert isinstance(rt.repository, MemoryRepository)


def test_open_session_uses_config():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        config_path = root / "blockdoc.toml"
        config_path.write_text("""
[editor]
autosave_delay_ms = 1234
id_strategy = "sequential"
""")
        rt = build_runtime(config_path=config_path, storage_root=root, backend="memory")
        session = rt.open_session()
        try:
            assert session.autosave.delay_ms == 1234
            assert isinstance(session.idgen, SequentialId)
        finally:
            session.close()

        assert isinstance(rt.new_idgen(), SequentialId)
        rt.config.editor.id_strategy = "nanoid"
        assert isinstance(rt.new_idgen(), NanoId)


SEQUENTIAL = """
[editor]
id_strategy = "sequential"
"""


@pytest.mark.parametrize("backend", ["memory", "yaml", "sqlite"])
def test_sequential_ids_are_not_reused_after_reopen(backend):
    """Deleting the newest block and reopening never hands its id out again."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        config_path = root / "blockdoc.toml"
        config_path.write_text(SEQUENTIAL)
        rt = build_runtime(config_path=config_path, storage_root=root, backend=backend)

        session = rt.open_session()
        doc_id = session.document_id
        assert [b.id for b in session.blocks] == ["1"]
        first = session.dispatch(SplitAfter("1"))
        assert first.focus_target == "2"
        session.dispatch(DeleteBlock("2"))
        session.close(flush=True)
        assert rt.repository.get(doc_id).next_block_id == 3

        session = rt.open_session(doc_id)
        second = session.dispatch(SplitAfter("1"))
        session.close(flush=True)
        assert second.focus_target == "3"
        assert [b.id for b in rt.gateway.open(doc_id).blocks] == ["1", "3"]


def test_new_document_first_block_follows_sequential_strategy():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        config_path = root / "blockdoc.toml"
        config_path.write_text(SEQUENTIAL)
        rt = build_runtime(config_path=config_path, storage_root=root, backend="memory")
        document = rt.gateway.open()
        assert [b.id for b in document.blocks] == ["1"]
        assert document.next_block_id == 2
