"""API-side session storage."""
from pdfmarks.api.storage.session_store import SessionRecord, SessionStore

__all__ = ["SessionRecord", "SessionStore"]
