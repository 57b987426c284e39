import io
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

import yaml

from ..core.ports import DocumentRecord, DocumentRepository
from .memory_repo import apply_changes, utcnow

logger = logging.getLogger(__name__)


def encode_record(record: DocumentRecord) -> str:
    buf = io.StringIO()
    yaml.safe_dump(record.to_dict(), buf, sort_keys=False, allow_unicode=True)
    return buf.getvalue()


def decode_record(text: str) -> DocumentRecord:
    data = yaml.safe_load(io.StringIO(text)) or {}
    return DocumentRecord(
        id=int(data["id"]),
        title=data.get("title") or "Untitled",
        content=list(data.get("content") or []),
        created_at=_dt(data.get("createdAt")),
        updated_at=_dt(data.get("updatedAt")),
        owner_id=data.get("userId"),
        next_block_id=int(data.get("nextBlockId") or 1),
    )


def _dt(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class YamlFileRepository(DocumentRepository):
    """
    Flat store: one directory, files named <id>.yaml. The file is the source
    of truth; ids continue after the largest id on disk.
    """

    def __init__(self, root: Path):
        self.root = root
        self._lock = threading.Lock()

    def _path(self, id: int) -> Path:
        return self.root / f"{id}.yaml"

    def _ids(self) -> Iterable[int]:
        if not self.root.exists():
            return []
        return sorted(int(p.stem) for p in self.root.glob("*.yaml") if p.stem.isdigit())

    def _read(self, id: int) -> DocumentRecord | None:
        p = self._path(id)
        if not p.exists():
            return None
        return decode_record(p.read_text(encoding="utf-8"))

    def _write(self, record: DocumentRecord) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        # atomic replace
        tmp = self._path(record.id).with_suffix(".yaml.tmp")
        try:
            tmp.write_text(encode_record(record), encoding="utf-8")
            tmp.replace(self._path(record.id))
        finally:
            tmp.unlink(missing_ok=True)

    def create(
        self, title: str, content: list[dict[str, Any]], owner_id: int | None = None
    ) -> DocumentRecord:
        with self._lock:
            new_id = max(self._ids(), default=0) + 1
            now = utcnow()
            record = DocumentRecord(
                id=new_id,
                title=title,
                content=list(content),
                created_at=now,
                updated_at=now,
                owner_id=owner_id,
            )
            self._write(record)
            logger.debug("created document %s at %s", new_id, self._path(new_id))
            return record

    def update(self, id: int, changes: dict[str, Any]) -> DocumentRecord | None:
        with self._lock:
            record = self._read(id)
            if record is None:
                return None
            updated = apply_changes(record, changes)
            self._write(updated)
            return updated

    def get(self, id: int) -> DocumentRecord | None:
        return self._read(id)

    def delete(self, id: int) -> bool:
        p = self._path(id)
        if not p.exists():
            return False
        p.unlink()
        return True

    def list(self, owner_id: int | None = None) -> list[DocumentRecord]:
        records = [r for r in (self._read(i) for i in self._ids()) if r is not None]
        if owner_id is not None:
            records = [r for r in records if r.owner_id == owner_id]
        return records
