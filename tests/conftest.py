"""Shared fixtures: deterministic time and recording collaborators."""

import pytest

from blockdoc.adapters.idgen import SequentialId
from blockdoc.adapters.memory_repo import MemoryRepository
from blockdoc.core.content import empty_payload_for, extract_plain_text, payload_with_text
from blockdoc.core.model import Block
from blockdoc.gateway import DocumentGateway


class ManualClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class ManualTimer:
    def __init__(self, when: float, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Timers fire only when the test advances the clock."""

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self.timers: list[ManualTimer] = []

    def call_later(self, delay, callback):
        timer = ManualTimer(self.clock.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.clock.now + seconds
        while True:
            due = sorted(
                (t for t in self.pending if t.when <= target), key=lambda t: t.when
            )
            if not due:
                break
            timer = due[0]
            timer.cancelled = True
            self.clock.now = timer.when
            timer.callback()
        self.clock.now = target


class RecordingFocus:
    def __init__(self):
        self.calls: list[str] = []

    def focus(self, position: str = "end") -> None:
        self.calls.append(position)


class RecordingNotifier:
    def __init__(self):
        self.messages: list[tuple[str, str, str]] = []

    def notify(self, level: str, title: str, message: str) -> None:
        self.messages.append((level, title, message))


class FakeEditor:
    """Inline editor stand-in holding a payload and a caret offset."""

    def __init__(
        self,
        content: str = "<p></p>",
        caret: int = 0,
        focused: bool = True,
        list_item: int | None = None,
    ):
        self.content = content
        self.caret = caret
        self.focused = focused
        self.list_item = list_item

    def get_plain_text(self) -> str:
        return extract_plain_text(self.content)

    def get_structured_content(self) -> str:
        return self.content

    def is_empty(self) -> bool:
        return not self.get_plain_text().strip()

    def is_focused(self) -> bool:
        return self.focused

    def set_content(self, payload: str) -> None:
        self.content = payload

    def insert_plain_text(self, text: str) -> None:
        self.content = payload_with_text("paragraph", self.get_plain_text() + text)

    def caret_offset(self) -> int:
        return self.caret

    def current_list_item(self) -> int | None:
        return self.list_item


def para(id: str, text: str = "") -> Block:
    content = payload_with_text("paragraph", text) if text else empty_payload_for("paragraph")
    return Block(id=id, type="paragraph", content=content)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def idgen():
    return SequentialId()


@pytest.fixture
def gateway():
    return DocumentGateway(MemoryRepository())
