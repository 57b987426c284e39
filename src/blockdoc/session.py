"""
One open editor over one document.

The session owns the block sequence, routes inline-editor events to the
block list editor, moves focus once a new sequence is committed, and feeds
every change to the autosave coordinator.
"""

import logging
import time
from typing import Callable, Iterable

from .adapters.idgen import high_water_mark
from .autosave import (
    DEFAULT_DELAY_MS,
    DEFAULT_INDICATOR_MS,
    AutosaveCoordinator,
    Snapshot,
    make_snapshot,
)
from .core.content import empty_payload_for
from .core.editor import (
    ConvertFormat,
    DeleteBackwardMerge,
    EditResult,
    EnterInList,
    Intent,
    MoveViaDrag,
    Signal,
    SlashCommand,
    SplitAfter,
    UpdateBlockContent,
    apply_intent,
)
from .core.model import (
    DEFAULT_TITLE,
    Block,
    BlockId,
    BlockType,
    Document,
    create_block,
    is_list_type,
)
from .core.ports import FocusHandle, IdGenerator, InlineContentEditor, Notifier, Scheduler
from .errors import BlockdocError
from .gateway import DocumentGateway

logger = logging.getLogger(__name__)

MOD_KEYS = frozenset({"mod", "ctrl", "meta", "cmd"})


class LoggingNotifier(Notifier):
    """Default notifier: user notifications go to the log."""

    def notify(self, level: str, title: str, message: str) -> None:
        log_level = logging.ERROR if level == "error" else logging.INFO
        logger.log(log_level, "%s: %s", title, message)


class EditSession:
    def __init__(
        self,
        document: Document,
        gateway: DocumentGateway | None = None,
        idgen: IdGenerator | None = None,
        autosave_delay_ms: int = DEFAULT_DELAY_MS,
        saving_indicator_ms: int = DEFAULT_INDICATOR_MS,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        notifier: Notifier | None = None,
    ):
        self.document_id = document.id
        self.created_at = document.created_at
        self.owner_id = document.owner_id
        self.next_block_id = document.next_block_id
        self.gateway = gateway
        self.idgen = idgen
        self.notifier = notifier or LoggingNotifier()

        self._title = document.title or DEFAULT_TITLE
        self._blocks: list[Block] = list(document.blocks)
        if not self._blocks:
            self._blocks = [
                create_block(
                    BlockType.PARAGRAPH.value,
                    empty_payload_for(BlockType.PARAGRAPH),
                    idgen=idgen,
                )
            ]

        self.active_block_id: BlockId | None = None
        self.last_focused_block_id: BlockId | None = None
        self._focus_handles: dict[BlockId, FocusHandle] = {}
        self._title_handle: FocusHandle | None = None
        self._busy = False
        self.closed = False

        self.autosave = AutosaveCoordinator(
            self._save_snapshot,
            initial=self.snapshot(),
            delay_ms=autosave_delay_ms,
            indicator_ms=saving_indicator_ms,
            scheduler=scheduler,
            clock=clock,
        )

    @classmethod
    def open(
        cls,
        gateway: DocumentGateway,
        document_id: int | None = None,
        **kwargs,
    ) -> "EditSession":
        """Load `document_id`, or create a new empty document when None."""
        document = gateway.open(document_id)
        return cls(document, gateway=gateway, **kwargs)

    # state

    @property
    def title(self) -> str:
        return self._title

    @property
    def blocks(self) -> list[Block]:
        return list(self._blocks)

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_saving(self) -> bool:
        return self.autosave.is_saving

    def block(self, block_id: BlockId) -> Block | None:
        for b in self._blocks:
            if b.id == block_id:
                return b
        return None

    def index_of(self, block_id: BlockId) -> int:
        for i, b in enumerate(self._blocks):
            if b.id == block_id:
                return i
        return -1

    def snapshot(self) -> Snapshot:
        return make_snapshot(self._title, self._blocks, high_water_mark(self.idgen))

    def document(self) -> Document:
        return Document(
            id=self.document_id,
            title=self._title,
            blocks=list(self._blocks),
            created_at=self.created_at,
            owner_id=self.owner_id,
            next_block_id=self._high_water(),
        )

    def word_count(self) -> int:
        return self.document().word_count()

    # mutation

    def dispatch(self, intent: Intent) -> EditResult:
        """Apply one intent; focus moves only after the new sequence is committed."""
        if self.closed:
            return EditResult(blocks=list(self._blocks))
        if self._busy:
            logger.debug("dropping re-entrant intent %r", intent)
            return EditResult(blocks=list(self._blocks))

        self._busy = True
        try:
            result = apply_intent(self._blocks, intent, self.idgen)
            if result.changed:
                self._blocks = list(result.blocks)
                self.autosave.observe(self.snapshot())
        finally:
            self._busy = False

        self._apply_focus(result)
        return result

    def apply_all(self, intents: Iterable[Intent]) -> list[EditResult]:
        return [self.dispatch(intent) for intent in intents]

    def set_title(self, title: str) -> None:
        self._title = title or DEFAULT_TITLE
        if not self.closed:
            self.autosave.observe(self.snapshot())

    def convert(
        self,
        block_id: BlockId,
        target_type: str,
        language: str | None = None,
        editor: InlineContentEditor | None = None,
    ) -> EditResult:
        """Format menu selection: text-preserving conversion."""
        result = self.dispatch(ConvertFormat(block_id, target_type, language))
        self._push_content(block_id, editor)
        return result

    def set_language(self, block_id: BlockId, language: str) -> EditResult:
        return self.dispatch(UpdateBlockContent(block_id, {"language": language}))

    def add_block_at_end(self, block_type: str = BlockType.PARAGRAPH.value) -> EditResult:
        return self.dispatch(SplitAfter(self._blocks[-1].id, block_type))

    # focus registry

    def register_focus_handle(self, block_id: BlockId, handle: FocusHandle) -> None:
        self._focus_handles[block_id] = handle

    def unregister_focus_handle(self, block_id: BlockId) -> None:
        self._focus_handles.pop(block_id, None)

    def register_title_handle(self, handle: FocusHandle | None) -> None:
        self._title_handle = handle

    def focus_block(self, block_id: BlockId, position: str = "end") -> bool:
        handle = self._focus_handles.get(block_id)
        if handle is None:
            return False
        handle.focus(position)
        return True

    def focus_title(self) -> bool:
        if self._title_handle is None:
            return False
        self._title_handle.focus("end")
        return True

    def _apply_focus(self, result: EditResult) -> None:
        if result.focus_target is not None:
            self.focus_block(result.focus_target)
        if result.signal is Signal.FOCUS_TITLE:
            self.focus_title()
        elif result.signal is Signal.FOCUS_FIRST_BLOCK and self._blocks:
            self.focus_block(self._blocks[0].id, "start")

    # inline editor events

    def on_focus(self, block_id: BlockId) -> None:
        self.active_block_id = block_id
        self.last_focused_block_id = block_id

    def on_blur(self, block_id: BlockId) -> None:
        if self.active_block_id == block_id:
            self.active_block_id = None

    def on_text_changed(self, block_id: BlockId, editor: InlineContentEditor) -> EditResult:
        return self.dispatch(
            UpdateBlockContent(block_id, {"content": editor.get_structured_content()})
        )

    def on_paste(self, block_id: BlockId, text: str, editor: InlineContentEditor) -> EditResult:
        """Pasted content is inserted as plain text only."""
        if text:
            editor.insert_plain_text(text)
        return self.on_text_changed(block_id, editor)

    def on_key(
        self,
        block_id: BlockId,
        key: str,
        modifiers: Iterable[str] = (),
        editor: InlineContentEditor | None = None,
    ) -> bool:
        """
        Route a key press. Returns True when the session handled it and the
        inline editor must not apply its default behaviour.
        """
        index = self.index_of(block_id)
        if index < 0 or editor is None:
            return False
        mods = frozenset(m.lower() for m in modifiers)
        block = self._blocks[index]

        if key == "Enter" and "shift" not in mods:
            return self._on_enter(block, mods, editor)
        if key == "Backspace":
            return self._on_backspace(block, index, editor)
        return False

    def _on_enter(self, block: Block, mods: frozenset, editor: InlineContentEditor) -> bool:
        text = editor.get_plain_text()
        if text.strip().startswith("/"):
            self.on_text_changed(block.id, editor)
            if self.dispatch(SlashCommand(block.id, text)).changed:
                self._push_content(block.id, editor)
                return True

        if block.block_type is BlockType.CODE:
            if not mods & MOD_KEYS:
                return False  # newline inside the code block
            self.dispatch(SplitAfter(block.id, BlockType.PARAGRAPH.value))
            return True

        if is_list_type(block.type):
            self.on_text_changed(block.id, editor)
            if self.dispatch(EnterInList(block.id, editor.current_list_item())).changed:
                self._push_content(block.id, editor)
            return True

        # new blocks never inherit a list type
        self.dispatch(SplitAfter(block.id, BlockType.PARAGRAPH.value))
        return True

    def _on_backspace(self, block: Block, index: int, editor: InlineContentEditor) -> bool:
        if editor.is_empty():
            self.on_text_changed(block.id, editor)
            self.dispatch(DeleteBackwardMerge(block.id))
            return True
        if index == 0 and editor.caret_offset() == 0:
            self.focus_title()
            return True
        return False

    def on_title_key(self, key: str) -> bool:
        if key != "Enter":
            return False
        self._apply_focus(EditResult(blocks=list(self._blocks), signal=Signal.FOCUS_FIRST_BLOCK))
        return True

    def on_drag_end(self, active_id: BlockId, over_id: BlockId | None) -> EditResult:
        if over_id is None or active_id == over_id:
            return EditResult(blocks=list(self._blocks))
        return self.dispatch(MoveViaDrag(active_id, over_id))

    def _push_content(self, block_id: BlockId, editor: InlineContentEditor | None) -> None:
        block = self.block(block_id)
        if editor is not None and block is not None:
            editor.set_content(block.content)

    # persistence

    def _high_water(self) -> int:
        return max(self.next_block_id, high_water_mark(self.idgen) or 1)

    def _save_snapshot(self, snapshot: Snapshot) -> None:
        if self.gateway is None or self.document_id is None:
            return
        blocks = [Block.from_dict(b) for b in snapshot["content"]]
        try:
            self.gateway.save(
                self.document_id,
                snapshot["title"],
                blocks,
                next_block_id=max(self.next_block_id, snapshot.get("nextBlockId") or 1),
            )
        except BlockdocError as e:
            logger.warning("autosave of document %s failed: %s", self.document_id, e)
            self.notifier.notify("error", "Error", f"Failed to save document: {e}")
        else:
            self.notifier.notify("info", "Saved", "Document saved successfully")

    def save_now(self) -> bool:
        """Save immediately if there are unsaved changes."""
        if self.closed:
            return False
        self.autosave.observe(self.snapshot())
        return self.autosave.flush()

    def close(self, flush: bool = False) -> None:
        """Tear down the session; a pending autosave never fires afterwards."""
        if self.closed:
            return
        if flush:
            self.save_now()
        self.autosave.close()
        self._focus_handles.clear()
        self._title_handle = None
        self.closed = True
