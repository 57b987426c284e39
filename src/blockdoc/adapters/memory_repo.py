import copy
import threading
from datetime import datetime, timezone
from typing import Any

from ..core.ports import DocumentRecord, DocumentRepository


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def apply_changes(record: DocumentRecord, changes: dict[str, Any]) -> DocumentRecord:
    """Shallow-merge update fields into a record; updatedAt defaults to now."""
    updated = copy.deepcopy(record)
    if "title" in changes and changes["title"] is not None:
        updated.title = changes["title"]
    if "content" in changes and changes["content"] is not None:
        updated.content = copy.deepcopy(list(changes["content"]))
    if changes.get("nextBlockId") is not None:
        updated.next_block_id = max(record.next_block_id, int(changes["nextBlockId"]))
    updated_at = changes.get("updatedAt")
    if isinstance(updated_at, str):
        updated_at = datetime.fromisoformat(updated_at)
    updated.updated_at = updated_at or utcnow()
    return updated


class MemoryRepository(DocumentRepository):
    """Process-local repository; ids count up from 1."""

    def __init__(self) -> None:
        self._documents: dict[int, DocumentRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(
        self, title: str, content: list[dict[str, Any]], owner_id: int | None = None
    ) -> DocumentRecord:
        with self._lock:
            now = utcnow()
            record = DocumentRecord(
                id=self._next_id,
                title=title,
                content=copy.deepcopy(list(content)),
                created_at=now,
                updated_at=now,
                owner_id=owner_id,
            )
            self._documents[record.id] = record
            self._next_id += 1
            return copy.deepcopy(record)

    def update(self, id: int, changes: dict[str, Any]) -> DocumentRecord | None:
        with self._lock:
            record = self._documents.get(id)
            if record is None:
                return None
            updated = apply_changes(record, changes)
            self._documents[id] = updated
            return copy.deepcopy(updated)

    def get(self, id: int) -> DocumentRecord | None:
        record = self._documents.get(id)
        return copy.deepcopy(record) if record else None

    def list(self, owner_id: int | None = None) -> list[DocumentRecord]:
        records = sorted(self._documents.values(), key=lambda r: r.id)
        if owner_id is not None:
            records = [r for r in records if r.owner_id == owner_id]
        return [copy.deepcopy(r) for r in records]

    def delete(self, id: int) -> bool:
        with self._lock:
            return self._documents.pop(id, None) is not None
