"""Convert a block between types while keeping its visible text."""

from dataclasses import replace

from .content import code_language, extract_plain_text, payload_with_text
from .model import Block, BlockType, normalize_block_type

DEFAULT_CODE_LANGUAGE = "plaintext"

CODE_LANGUAGES = (
    "plaintext",
    "javascript",
    "typescript",
    "python",
    "java",
    "c",
    "cpp",
    "go",
    "ruby",
    "rust",
    "html",
    "css",
    "json",
    "bash",
    "sql",
)


def convert_content(
    content: str, target_type: str, language: str | None = None
) -> tuple[BlockType, str]:
    """
    Rebuild `content` as a `target_type` payload.

    Markup is discarded entirely; the trimmed plain text goes back in as a
    single run. List targets always get exactly one item.
    """
    target = normalize_block_type(target_type)
    text = extract_plain_text(content).strip()
    lang = language if target is BlockType.CODE else None
    return target, payload_with_text(target, text, lang)


def convert_block(block: Block, target_type: str, language: str | None = None) -> Block:
    """Return `block` converted to `target_type`; never raises."""
    target = normalize_block_type(target_type)
    if target is BlockType.CODE:
        language = language or block.language or code_language(block.content)
    else:
        language = None
    target, content = convert_content(block.content, target, language)
    return replace(block, type=target.value, content=content, language=language)
