"""blockdoc - a block-structured document editor core."""

__version__ = "0.1.0"
