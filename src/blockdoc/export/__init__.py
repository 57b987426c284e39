"""Render documents for use outside the editor."""

from .html import render_html
from .markdown import render_markdown

__all__ = ["render_html", "render_markdown"]
