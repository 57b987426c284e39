"""
Translate block content payloads to and from plain text.

Payloads are HTML fragments as emitted by the inline rich-text editor, e.g.
``<p>Hello <strong>world</strong></p>`` or ``<ul><li><p>item</p></li></ul>``.
Extraction is lossy: inline marks are dropped.
"""

import html
import re
from html.parser import HTMLParser

from .model import BlockType, normalize_block_type

BLOCK_TAGS = frozenset(
    {
        "p", "div", "pre", "blockquote", "li", "ul", "ol",
        "h1", "h2", "h3", "h4", "h5", "h6",
    }
)
LIST_TAGS = frozenset({"ul", "ol"})

CODE_LANGUAGE_RE = re.compile(r'class="[^"]*\blanguage-([\w+#.-]+)')

_HEADING_TAGS = {
    BlockType.TITLE: "h1",
    BlockType.HEADING1: "h1",
    BlockType.HEADING2: "h2",
    BlockType.HEADING3: "h3",
}

_LIST_SHELLS = {
    BlockType.BULLET_LIST: ("<ul>", "</ul>"),
    BlockType.ORDERED_LIST: ("<ol>", "</ol>"),
    BlockType.DASHED_LIST: ('<ul data-type="dashedList">', "</ul>"),
}

EMPTY_LIST_ITEM = "<li><p></p></li>"


class _TextExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []
        self._pre_depth = 0
        self._pending_break = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "br":
            self.parts.append("\n")
            return
        if tag == "pre":
            self._pre_depth += 1
        if tag in BLOCK_TAGS and self.parts:
            self._pending_break = True

    def handle_endtag(self, tag: str) -> None:
        if tag == "pre" and self._pre_depth:
            self._pre_depth -= 1
        if tag in BLOCK_TAGS and self.parts:
            self._pending_break = True

    def handle_data(self, data: str) -> None:
        if not data:
            return
        # Formatting whitespace between block tags is not content
        if not self._pre_depth and "\n" in data and not data.strip():
            return
        if self._pending_break and self.parts and not self.parts[-1].endswith("\n"):
            self.parts.append("\n")
        self._pending_break = False
        self.parts.append(data)

    def text(self) -> str:
        return "".join(self.parts)


class _ListScanner(HTMLParser):
    """Locate the top-level items of a list payload."""

    def __init__(self, source: str) -> None:
        super().__init__(convert_charrefs=True)
        self._line_starts = [0]
        for i, ch in enumerate(source):
            if ch == "\n":
                self._line_starts.append(i + 1)
        self._source = source
        self._list_depth = 0
        self._item_depth = 0
        self._current: dict | None = None
        self.items: list[dict] = []

    def _offset(self) -> int:
        line, col = self.getpos()
        return self._line_starts[line - 1] + col

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in LIST_TAGS:
            self._list_depth += 1
        elif tag == "li":
            self._item_depth += 1
            if self._list_depth == 1 and self._item_depth == 1:
                self._current = {"start": self._offset(), "text": []}
        elif tag == "br" and self._current is not None:
            self._current["text"].append("\n")

    def handle_endtag(self, tag: str) -> None:
        if tag in LIST_TAGS:
            self._list_depth -= 1
        elif tag == "li":
            if self._item_depth == 1 and self._current is not None:
                start = self._offset()
                end = self._source.find(">", start) + 1
                self._current["end"] = end
                self.items.append(self._current)
                self._current = None
            self._item_depth = max(0, self._item_depth - 1)

    def handle_data(self, data: str) -> None:
        if self._current is not None and data.strip():
            self._current["text"].append(data)


def extract_plain_text(content: str | None) -> str:
    """
    Return the visible text of a payload.

    Block-level elements are separated by a newline, ``<br>`` becomes a
    newline and entities are unescaped. Surrounding whitespace is left for
    callers to trim.

    Examples:
        >>> extract_plain_text("<p>Hello <strong>world</strong></p>")
        'Hello world'
        >>> extract_plain_text("<ul><li><p>a</p></li><li><p>b</p></li></ul>")
        'a\\nb'
    """
    if not content:
        return ""
    parser = _TextExtractor()
    parser.feed(content)
    parser.close()
    return parser.text()


def is_empty(content: str | None) -> bool:
    return not extract_plain_text(content).strip()


def payload_with_text(type: str, text: str = "", language: str | None = None) -> str:
    """Build the structured payload for `type` holding `text` as one plain run."""
    block_type = normalize_block_type(type)
    escaped = html.escape(text, quote=False)

    if block_type in _LIST_SHELLS:
        opening, closing = _LIST_SHELLS[block_type]
        return f"{opening}<li><p>{escaped}</p></li>{closing}"

    if block_type is BlockType.CODE:
        if language:
            cls = html.escape(f"language-{language}")
            return f'<pre><code class="{cls}">{escaped}</code></pre>'
        return f"<pre><code>{escaped}</code></pre>"

    tag = _HEADING_TAGS.get(block_type, "p")
    return f"<{tag}>{escaped}</{tag}>"


def empty_payload_for(type: str) -> str:
    """
    Canonical empty content for a block type: a single empty list item for
    list types, an empty paragraph/heading/code shell otherwise.
    """
    return payload_with_text(type, "")


def code_language(content: str | None) -> str | None:
    if not content:
        return None
    m = CODE_LANGUAGE_RE.search(content)
    return m.group(1) if m else None


def list_items(content: str | None) -> list[str]:
    """Plain text of each top-level list item."""
    if not content:
        return []
    scanner = _ListScanner(content)
    scanner.feed(content)
    scanner.close()
    return ["".join(item["text"]) for item in scanner.items]


def append_list_item(content: str) -> str:
    """Append an empty item to the outermost list of a list payload."""
    closing = max(content.rfind("</ul>"), content.rfind("</ol>"))
    if closing == -1:
        return content
    return content[:closing] + EMPTY_LIST_ITEM + content[closing:]


def _item_spans(content: str) -> list[dict]:
    scanner = _ListScanner(content)
    scanner.feed(content)
    scanner.close()
    return scanner.items


def drop_last_list_item(content: str) -> str:
    """Remove the last top-level item of a list payload."""
    items = _item_spans(content)
    if not items:
        return content
    last = items[-1]
    return content[: last["start"]] + content[last["end"] :]


def insert_list_item(content: str, after: int) -> str:
    """Insert an empty item right after top-level item `after`."""
    items = _item_spans(content)
    if not 0 <= after < len(items):
        return append_list_item(content)
    end = items[after]["end"]
    return content[:end] + EMPTY_LIST_ITEM + content[end:]


def slice_list_items(content: str, start: int, stop: int) -> str:
    """
    Keep only top-level items ``start:stop`` of a list payload, leaving the
    list wrapper and the markup of the kept items untouched.

    Examples:
        >>> slice_list_items("<ul><li>a</li><li>b</li><li>c</li></ul>", 1, 3)
        '<ul><li>b</li><li>c</li></ul>'
    """
    items = _item_spans(content)
    if not items:
        return content
    kept = items[start:stop]
    head = content[: items[0]["start"]]
    tail = content[items[-1]["end"] :]
    if not kept:
        return head + tail
    return head + content[kept[0]["start"] : kept[-1]["end"]] + tail
