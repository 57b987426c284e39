"""
Block list editor: a pure reducer over the ordered block sequence.

``apply_intent(blocks, intent)`` never mutates its input and never raises for
stale or invalid gestures. Unknown block ids, deleting the last block and
backward-merging the first block all come back as unchanged results
(``EditResult.changed is False``).
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Sequence, Union

from .commands import normalize_command, resolve_slash_command
from .content import (
    empty_payload_for,
    extract_plain_text,
    insert_list_item,
    is_empty,
    list_items,
    slice_list_items,
)
from .model import Block, BlockId, BlockType, create_block, is_list_type, normalize_block_type
from .ports import IdGenerator
from .transitions import convert_block

UPDATABLE_FIELDS = frozenset({"content", "type", "language"})


class Signal(str, Enum):
    FOCUS_TITLE = "focus-title"
    FOCUS_FIRST_BLOCK = "focus-first-block"


@dataclass(frozen=True)
class EditResult:
    blocks: list[Block]
    focus_target: BlockId | None = None
    signal: Signal | None = None
    changed: bool = False


@dataclass(frozen=True)
class SplitAfter:
    block_id: BlockId
    new_type: str = BlockType.PARAGRAPH.value


@dataclass(frozen=True)
class DeleteBackwardMerge:
    block_id: BlockId


@dataclass(frozen=True)
class DeleteBlock:
    block_id: BlockId


@dataclass(frozen=True)
class UpdateBlockContent:
    block_id: BlockId
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConvertFormat:
    block_id: BlockId
    target_type: str
    language: str | None = None


@dataclass(frozen=True)
class Reorder:
    block_id: BlockId
    target_index: int


@dataclass(frozen=True)
class MoveViaDrag:
    from_id: BlockId
    to_id: BlockId


@dataclass(frozen=True)
class SlashCommand:
    block_id: BlockId
    command_text: str | None = None


@dataclass(frozen=True)
class EnterInList:
    """
    Enter pressed inside a list block on item `item_index` (the last item when
    None). A non-empty item gets a new empty item after it; an empty one exits
    the list.
    """

    block_id: BlockId
    item_index: int | None = None


Intent = Union[
    SplitAfter,
    DeleteBackwardMerge,
    DeleteBlock,
    UpdateBlockContent,
    ConvertFormat,
    Reorder,
    MoveViaDrag,
    SlashCommand,
    EnterInList,
]


def _index(blocks: Sequence[Block], block_id: BlockId) -> int:
    for i, block in enumerate(blocks):
        if block.id == block_id:
            return i
    return -1


def _unchanged(blocks: Sequence[Block], signal: Signal | None = None) -> EditResult:
    return EditResult(blocks=list(blocks), signal=signal)


def _replace_at(blocks: Sequence[Block], index: int, *new: Block) -> list[Block]:
    return [*blocks[:index], *new, *blocks[index + 1 :]]


def _split_after(blocks: Sequence[Block], intent: SplitAfter, idgen: IdGenerator | None) -> EditResult:
    i = _index(blocks, intent.block_id)
    if i < 0:
        return _unchanged(blocks)
    new_type = normalize_block_type(intent.new_type)
    new_block = create_block(new_type.value, empty_payload_for(new_type), idgen=idgen)
    out = [*blocks[: i + 1], new_block, *blocks[i + 1 :]]
    return EditResult(blocks=out, focus_target=new_block.id, changed=True)


def _delete_backward_merge(
    blocks: Sequence[Block], intent: DeleteBackwardMerge, idgen: IdGenerator | None
) -> EditResult:
    i = _index(blocks, intent.block_id)
    if i < 0:
        return _unchanged(blocks)
    if i == 0:
        # first block is never removed here; the cursor moves to the title instead
        return _unchanged(blocks, Signal.FOCUS_TITLE)
    if not is_empty(blocks[i].content):
        return _unchanged(blocks)
    out = [*blocks[:i], *blocks[i + 1 :]]
    return EditResult(blocks=out, focus_target=blocks[i - 1].id, changed=True)


def _delete_block(blocks: Sequence[Block], intent: DeleteBlock, idgen: IdGenerator | None) -> EditResult:
    i = _index(blocks, intent.block_id)
    if i < 0 or len(blocks) <= 1:
        return _unchanged(blocks)
    out = [*blocks[:i], *blocks[i + 1 :]]
    focus = blocks[i - 1].id if i > 0 else out[0].id
    return EditResult(blocks=out, focus_target=focus, changed=True)


def _update_block_content(
    blocks: Sequence[Block], intent: UpdateBlockContent, idgen: IdGenerator | None
) -> EditResult:
    i = _index(blocks, intent.block_id)
    changes = {k: v for k, v in intent.changes.items() if k in UPDATABLE_FIELDS}
    if i < 0 or not changes:
        return _unchanged(blocks)
    if "type" in changes:
        changes["type"] = str(changes["type"])
    updated = replace(blocks[i], **changes)
    if updated == blocks[i]:
        return _unchanged(blocks)
    return EditResult(blocks=_replace_at(blocks, i, updated), changed=True)


def _convert_format(blocks: Sequence[Block], intent: ConvertFormat, idgen: IdGenerator | None) -> EditResult:
    i = _index(blocks, intent.block_id)
    if i < 0:
        return _unchanged(blocks)
    converted = convert_block(blocks[i], intent.target_type, intent.language)
    return EditResult(
        blocks=_replace_at(blocks, i, converted),
        focus_target=converted.id,
        changed=converted != blocks[i],
    )


def _move(blocks: Sequence[Block], from_index: int, to_index: int) -> EditResult:
    if from_index < 0 or not 0 <= to_index < len(blocks) or from_index == to_index:
        return _unchanged(blocks)
    # remove first, then insert: moving forward lands at to_index of the shortened list
    out = list(blocks)
    moved = out.pop(from_index)
    out.insert(to_index, moved)
    return EditResult(blocks=out, changed=True)


def _reorder(blocks: Sequence[Block], intent: Reorder, idgen: IdGenerator | None) -> EditResult:
    return _move(blocks, _index(blocks, intent.block_id), intent.target_index)


def _move_via_drag(blocks: Sequence[Block], intent: MoveViaDrag, idgen: IdGenerator | None) -> EditResult:
    to_index = _index(blocks, intent.to_id)
    if to_index < 0:
        return _unchanged(blocks)
    return _move(blocks, _index(blocks, intent.from_id), to_index)


def _slash_command(blocks: Sequence[Block], intent: SlashCommand, idgen: IdGenerator | None) -> EditResult:
    i = _index(blocks, intent.block_id)
    if i < 0:
        return _unchanged(blocks)
    text = extract_plain_text(blocks[i].content)
    if intent.command_text is not None and normalize_command(intent.command_text) != normalize_command(text):
        return _unchanged(blocks)
    target = resolve_slash_command(text)
    if target is None:
        return _unchanged(blocks)
    updated = replace(blocks[i], type=target.value, content=empty_payload_for(target), language=None)
    return EditResult(blocks=_replace_at(blocks, i, updated), focus_target=updated.id, changed=True)


def _enter_in_list(blocks: Sequence[Block], intent: EnterInList, idgen: IdGenerator | None) -> EditResult:
    i = _index(blocks, intent.block_id)
    if i < 0 or not is_list_type(blocks[i].type):
        return _unchanged(blocks)
    block = blocks[i]
    items = list_items(block.content)

    if not items and not is_empty(block.content):
        # legacy list content without item markup: wrap it before continuing
        block = convert_block(block, block.type)
        items = list_items(block.content)

    current = len(items) - 1 if intent.item_index is None else intent.item_index
    if items and not 0 <= current < len(items):
        return _unchanged(blocks)

    if items and items[current].strip():
        continued = replace(block, content=insert_list_item(block.content, current))
        return EditResult(blocks=_replace_at(blocks, i, continued), focus_target=block.id, changed=True)

    if len(items) <= 1:
        paragraph = replace(
            block,
            type=BlockType.PARAGRAPH.value,
            content=empty_payload_for(BlockType.PARAGRAPH),
            language=None,
        )
        return EditResult(blocks=_replace_at(blocks, i, paragraph), focus_target=block.id, changed=True)

    # the empty item leaves the list; items below it continue in a new list block
    paragraph = create_block(
        BlockType.PARAGRAPH.value, empty_payload_for(BlockType.PARAGRAPH), idgen=idgen
    )
    below = slice_list_items(block.content, current + 1, len(items))
    if current == 0:
        out = [paragraph, replace(block, content=below)]
    else:
        out = [replace(block, content=slice_list_items(block.content, 0, current)), paragraph]
        if current < len(items) - 1:
            out.append(create_block(block.type, below, idgen=idgen))
    return EditResult(blocks=_replace_at(blocks, i, *out), focus_target=paragraph.id, changed=True)


_HANDLERS: dict[type, Callable[..., EditResult]] = {
    SplitAfter: _split_after,
    DeleteBackwardMerge: _delete_backward_merge,
    DeleteBlock: _delete_block,
    UpdateBlockContent: _update_block_content,
    ConvertFormat: _convert_format,
    Reorder: _reorder,
    MoveViaDrag: _move_via_drag,
    SlashCommand: _slash_command,
    EnterInList: _enter_in_list,
}


def apply_intent(
    blocks: Sequence[Block], intent: Intent, idgen: IdGenerator | None = None
) -> EditResult:
    """Apply one intent and return the new sequence plus focus/signal outputs."""
    handler = _HANDLERS.get(type(intent))
    if handler is None:
        raise TypeError(f"Unsupported intent: {intent!r}")
    return handler(blocks, intent, idgen)


_OPS: dict[str, type] = {
    "split_after": SplitAfter,
    "delete_backward_merge": DeleteBackwardMerge,
    "delete_block": DeleteBlock,
    "update_block_content": UpdateBlockContent,
    "convert_format": ConvertFormat,
    "reorder": Reorder,
    "move_via_drag": MoveViaDrag,
    "slash_command": SlashCommand,
    "enter_in_list": EnterInList,
}


_ID_FIELDS = ("block_id", "from_id", "to_id")
_INT_FIELDS = ("target_index", "item_index")
_TEXT_FIELDS = ("new_type", "target_type", "language", "command_text")


def _coerce_fields(op: str, params: dict[str, Any]) -> dict[str, Any]:
    for name in _ID_FIELDS:
        if name in params:
            params[name] = str(params[name])
    for name in _INT_FIELDS:
        if name not in params:
            continue
        value = params[name]
        if value is None and name == "item_index":
            continue
        if isinstance(value, str) and value.strip().removeprefix("-").isdigit():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Invalid fields for {op}: {name} must be an integer, got {value!r}")
        params[name] = value
    for name in _TEXT_FIELDS:
        value = params.get(name)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"Invalid fields for {op}: {name} must be a string, got {value!r}")
    if "changes" in params and not isinstance(params["changes"], dict):
        raise ValueError(f"Invalid fields for {op}: changes must be a mapping")
    return params


def intent_from_dict(data: dict[str, Any]) -> Intent:
    """
    Build an intent from ``{"op": "split_after", "block_id": "..."}``.

    Block ids are taken as strings and indexes as integers, so ``"1"`` and
    ``1`` both work. Raises ValueError for unknown ops, missing fields or
    values of the wrong type.
    """
    params = dict(data)
    op = params.pop("op", None)
    cls = _OPS.get(str(op))
    if cls is None:
        raise ValueError(f"Unknown intent op: {op!r}")
    params = _coerce_fields(str(op), params)
    try:
        return cls(**params)
    except TypeError as e:
        raise ValueError(f"Invalid fields for {op}: {e}") from e
