"""Slash command vocabulary typed directly into a block."""

from .model import BlockType

SLASH_COMMANDS: dict[str, BlockType] = {
    "/title": BlockType.TITLE,
    "/h1": BlockType.HEADING1,
    "/heading": BlockType.HEADING2,
    "/h2": BlockType.HEADING2,
    "/subheading": BlockType.HEADING3,
    "/h3": BlockType.HEADING3,
    "/body": BlockType.PARAGRAPH,
    "/code": BlockType.CODE,
    "/monostyled": BlockType.CODE,
    "/bulletedlist": BlockType.BULLET_LIST,
    "/numberedlist": BlockType.ORDERED_LIST,
    "/dashedlist": BlockType.DASHED_LIST,
}


def normalize_command(text: str | None) -> str:
    return (text or "").strip().lower()


def resolve_slash_command(text: str | None) -> BlockType | None:
    """
    Exact match only: "/h2" resolves, "/h2x" and "/h" do not.

    Examples:
        >>> resolve_slash_command(" /H2 ")
        <BlockType.HEADING2: 'heading2'>
        >>> resolve_slash_command("/h2x") is None
        True
    """
    return SLASH_COMMANDS.get(normalize_command(text))


def is_slash_trigger(text: str | None) -> bool:
    """A lone "/" opens the format menu."""
    return normalize_command(text) == "/"
