"""Standalone HTML page for a document."""

import html

from ..core.content import code_language, extract_plain_text, list_items
from ..core.model import Block, BlockType, Document, block_css_class, normalize_block_type
from ..core.transitions import DEFAULT_CODE_LANGUAGE

_TAGS = {
    BlockType.TITLE: "h1",
    BlockType.HEADING1: "h1",
    BlockType.HEADING2: "h2",
    BlockType.HEADING3: "h3",
    BlockType.PARAGRAPH: "p",
    BlockType.MARKDOWN: "p",
}

PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
<article>
<h1 class="document-title">{title}</h1>
{body}
</article>
</body>
</html>
"""


def render_block(block: Block) -> str:
    btype = normalize_block_type(block.type)
    css = html.escape(block_css_class(block.type))

    if btype is BlockType.CODE:
        language = block.language or code_language(block.content) or DEFAULT_CODE_LANGUAGE
        code = html.escape(extract_plain_text(block.content))
        return (
            f'<pre class="{css}"><code class="language-{html.escape(language)}">'
            f"{code}</code></pre>"
        )

    if btype in (BlockType.BULLET_LIST, BlockType.ORDERED_LIST, BlockType.DASHED_LIST):
        tag = "ol" if btype is BlockType.ORDERED_LIST else "ul"
        items = "".join(
            f"<li>{html.escape(item.strip())}</li>" for item in list_items(block.content)
        )
        return f'<{tag} class="{css}">{items}</{tag}>'

    tag = _TAGS.get(btype, "p")
    text = html.escape(extract_plain_text(block.content).strip())
    return f'<{tag} class="{css}">{text}</{tag}>'


def render_html(document: Document) -> str:
    """
    Render a document as a standalone HTML page.

    Text is re-escaped from the extracted plain text, so inline marks and any
    markup in the stored payloads never reach the output verbatim.
    """
    body = "\n".join(render_block(b) for b in document.blocks)
    return PAGE.format(title=html.escape(document.title), body=body)
