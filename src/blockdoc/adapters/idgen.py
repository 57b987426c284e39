import secrets
import threading
from collections.abc import Iterable

from ..core.ports import IdGenerator

URL_ALPHABET = "useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict"


class NanoId(IdGenerator):
    def __init__(self, size: int = 21):  # 21 chars -> ~126 random bits
        self.size = size

    def new_id(self) -> str:
        return "".join(secrets.choice(URL_ALPHABET) for _ in range(self.size))


class SequentialId(IdGenerator):
    """
    Monotonic "1", "2", "3"... ids. Never hands out the same id twice, even
    after the block holding it was deleted, as long as `next_value` is saved
    with the document and passed back as `floor` on the next open.
    """

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    @classmethod
    def after(cls, existing_ids: Iterable[str], floor: int = 1) -> "SequentialId":
        """Continue past the largest numeric id in a document and past `floor`."""
        numeric = [int(i) for i in existing_ids if str(i).isdigit()]
        return cls(start=max(max(numeric, default=0) + 1, floor))

    @property
    def next_value(self) -> int:
        return self._next

    def new_id(self) -> str:
        with self._lock:
            value = self._next
            self._next += 1
            return str(value)


def high_water_mark(idgen: IdGenerator | None) -> int | None:
    """The next unused sequential id, or None for generators without a sequence."""
    if isinstance(idgen, SequentialId):
        return idgen.next_value
    return None
