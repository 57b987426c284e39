"""Pure document model and editing algorithms."""

from .model import Block, BlockType, Document, count_words, create_block
from .editor import EditResult, Signal, apply_intent

__all__ = [
    "Block",
    "BlockType",
    "Document",
    "EditResult",
    "Signal",
    "apply_intent",
    "count_words",
    "create_block",
]
