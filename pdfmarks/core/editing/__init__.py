"""Editing state: undo history and the per-document session."""

from pdfmarks.core.editing.history import History
from pdfmarks.core.editing.session import BookmarkSession

__all__ = ["BookmarkSession", "History"]
