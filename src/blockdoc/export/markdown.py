from ..core.content import code_language, extract_plain_text, list_items
from ..core.model import Block, BlockType, Document, normalize_block_type

_HEADING_PREFIX = {
    BlockType.TITLE: "# ",
    BlockType.HEADING1: "# ",
    BlockType.HEADING2: "## ",
    BlockType.HEADING3: "### ",
}


def render_block(block: Block) -> str:
    """Markdown for one block; empty blocks render as ''."""
    btype = normalize_block_type(block.type)

    if btype is BlockType.CODE:
        language = block.language or code_language(block.content) or ""
        code = extract_plain_text(block.content)
        return f"```{language}\n{code}\n```"

    if btype in (BlockType.BULLET_LIST, BlockType.ORDERED_LIST, BlockType.DASHED_LIST):
        items = [item.strip() for item in list_items(block.content)]
        lines = []
        for n, item in enumerate(items, start=1):
            if not item:
                continue
            marker = f"{n}." if btype is BlockType.ORDERED_LIST else "-"
            lines.append(f"{marker} {item}")
        return "\n".join(lines)

    text = extract_plain_text(block.content).strip()
    if not text:
        return ""
    return _HEADING_PREFIX.get(btype, "") + text


def render_markdown(document: Document) -> str:
    """Render a document as Markdown, the title as a top-level heading."""
    parts = [f"# {document.title}"]
    for block in document.blocks:
        rendered = render_block(block)
        if rendered:
            parts.append(rendered)
    return "\n\n".join(parts) + "\n"
