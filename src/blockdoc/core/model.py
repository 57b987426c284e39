from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .ports import IdGenerator

BlockId = str
DocumentId = int

DEFAULT_TITLE = "Untitled"


class BlockType(str, Enum):
    TITLE = "title"
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    HEADING3 = "heading3"
    PARAGRAPH = "paragraph"
    CODE = "code"
    MARKDOWN = "markdown"
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    DASHED_LIST = "dashedList"

    def __str__(self) -> str:
        return self.value


LIST_TYPES = frozenset(
    {BlockType.BULLET_LIST, BlockType.ORDERED_LIST, BlockType.DASHED_LIST}
)

_TYPE_NAMES = {
    BlockType.TITLE: "Title",
    BlockType.HEADING1: "Heading 1",
    BlockType.HEADING2: "Heading 2",
    BlockType.HEADING3: "Heading 3",
    BlockType.BULLET_LIST: "Bullet List",
    BlockType.ORDERED_LIST: "Numbered List",
    BlockType.DASHED_LIST: "Dashed List",
    BlockType.CODE: "Code",
    BlockType.MARKDOWN: "Markdown",
    BlockType.PARAGRAPH: "Body",
}

_CSS_CLASSES = {
    BlockType.TITLE: "text-[40px] font-bold",
    BlockType.HEADING1: "text-[30px] font-semibold",
    BlockType.HEADING2: "text-[24px] font-semibold",
    BlockType.HEADING3: "text-[20px] font-semibold",
    BlockType.CODE: "font-mono p-3 bg-[#F7F6F3] rounded-md text-sm",
    BlockType.MARKDOWN: "font-mono text-base",
    BlockType.BULLET_LIST: "text-base pl-5",
    BlockType.ORDERED_LIST: "text-base pl-5",
    BlockType.DASHED_LIST: "text-base pl-5",
    BlockType.PARAGRAPH: "text-base",
}


def normalize_block_type(value: str | None) -> BlockType:
    """Map a stored type string onto BlockType, falling back to paragraph."""
    try:
        return BlockType(value)
    except ValueError:
        return BlockType.PARAGRAPH


def is_list_type(value: str | None) -> bool:
    return normalize_block_type(value) in LIST_TYPES


def block_type_name(value: str | None) -> str:
    """Human readable name shown in format menus."""
    return _TYPE_NAMES[normalize_block_type(value)]


def block_css_class(value: str | None) -> str:
    return _CSS_CLASSES[normalize_block_type(value)]


def count_words(text: str | None) -> int:
    """
    Count whitespace separated words.

    Examples:
        >>> count_words("  hello   world ")
        2
        >>> count_words("   ")
        0
    """
    if not text:
        return 0
    return len(text.strip().split())


@dataclass(frozen=True)
class Block:
    id: BlockId
    type: str = BlockType.PARAGRAPH.value
    content: str = ""
    language: str | None = None  # only meaningful for code blocks

    @property
    def block_type(self) -> BlockType:
        return normalize_block_type(self.type)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": str(self.type),
            "content": self.content,
        }
        if self.language and self.block_type is BlockType.CODE:
            data["language"] = self.language
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Block":
        # Unknown type strings are kept as-is so newer payloads survive a save
        raw_type = data.get("type") or BlockType.PARAGRAPH.value
        content = data.get("content")
        return cls(
            id=str(data["id"]),
            type=str(raw_type),
            content="" if content is None else str(content),
            language=data.get("language") or None,
        )


def create_block(
    type: str = BlockType.PARAGRAPH.value,
    content: str = "",
    language: str | None = None,
    idgen: IdGenerator | None = None,
) -> Block:
    """Create a block with a fresh id (random nanoid-style unless idgen is given)."""
    if idgen is None:
        from ..adapters.idgen import NanoId

        idgen = NanoId()
    return Block(id=idgen.new_id(), type=str(type), content=content, language=language or None)


@dataclass
class Document:
    id: DocumentId | None = None
    title: str = DEFAULT_TITLE
    blocks: list[Block] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    owner_id: int | None = None
    # next unused sequential block id; survives deletion of the newest block
    next_block_id: int = 1

    def block_index(self, block_id: BlockId) -> int:
        for i, block in enumerate(self.blocks):
            if block.id == block_id:
                return i
        return -1

    def plain_text(self) -> str:
        from .content import extract_plain_text

        return "\n".join(extract_plain_text(b.content) for b in self.blocks)

    def word_count(self) -> int:
        from .content import extract_plain_text

        return sum(count_words(extract_plain_text(b.content)) for b in self.blocks)

    def content_dicts(self) -> list[dict[str, Any]]:
        return [b.to_dict() for b in self.blocks]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content_dicts(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "userId": self.owner_id,
            "nextBlockId": self.next_block_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        return cls(
            id=data.get("id"),
            title=data.get("title") or DEFAULT_TITLE,
            blocks=[Block.from_dict(b) for b in data.get("content") or []],
            created_at=_parse_dt(data.get("createdAt")),
            updated_at=_parse_dt(data.get("updatedAt")),
            owner_id=data.get("userId"),
            next_block_id=int(data.get("nextBlockId") or 1),
        )


def _parse_dt(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
