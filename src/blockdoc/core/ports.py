from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Protocol


@dataclass
class DocumentRecord:
    """
    A document as the repository stores it. `content` is the ordered list of
    block payloads; repositories round-trip it verbatim and never interpret it.
    """

    id: int
    title: str
    content: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    owner_id: int | None = None
    next_block_id: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "userId": self.owner_id,
            "nextBlockId": self.next_block_id,
        }


class DocumentRepository(Protocol):
    """
    Create/read/update/delete documents by id. `update` and `get` return None
    for unknown ids; `changes` may carry "title", "content", "updatedAt" and
    "nextBlockId"; the last only ever moves forward.
    """

    def create(
        self, title: str, content: list[dict[str, Any]], owner_id: int | None = None
    ) -> DocumentRecord:
        pass

    def update(self, id: int, changes: dict[str, Any]) -> DocumentRecord | None:
        pass

    def get(self, id: int) -> DocumentRecord | None:
        pass

    def list(self, owner_id: int | None = None) -> list[DocumentRecord]:
        pass

    def delete(self, id: int) -> bool:
        pass


class IdGenerator(Protocol):
    def new_id(self) -> str:
        pass


class InlineContentEditor(Protocol):
    """
    The rich-text surface that renders one block. The core never renders; it
    reads from and writes back to this surface.
    """

    def get_plain_text(self) -> str:
        pass

    def get_structured_content(self) -> str:
        pass

    def is_empty(self) -> bool:
        pass

    def is_focused(self) -> bool:
        pass

    def set_content(self, payload: str) -> None:
        pass

    def insert_plain_text(self, text: str) -> None:
        pass

    def caret_offset(self) -> int:
        pass

    def current_list_item(self) -> int | None:
        """Index of the top-level list item holding the caret, None outside a list."""
        pass


class FocusHandle(Protocol):
    def focus(self, position: str = "end") -> None:
        pass


class TimerHandle(Protocol):
    def cancel(self) -> None:
        pass


class Scheduler(Protocol):
    """Single logical timer queue used by autosave."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        pass


class Notifier(Protocol):
    """Visible, non-fatal user notifications (toasts)."""

    def notify(self, level: str, title: str, message: str) -> None:
        pass
