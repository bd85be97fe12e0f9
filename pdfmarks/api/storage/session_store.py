"""
In-memory editing session storage.

One BookmarkSession per open document. Nothing is persisted: closing a
session (or evicting it) simply drops its tree and history.
"""
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional

from pdfmarks.config.bookmark_settings import get_max_sessions
from pdfmarks.core.editing.session import BookmarkSession
from pdfmarks.core.exceptions import SessionNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    """Session plus the document it edits."""
    session_id: str
    session: BookmarkSession
    pdf_path: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)


class SessionStore:
    """Open editing sessions, oldest evicted first when full."""

    def __init__(self, max_sessions: Optional[int] = None):
        """Initialize session store.

        Args:
            max_sessions: Cap on open sessions (default: BOOKMARK_MAX_SESSIONS env)
        """
        self.max_sessions = max_sessions or get_max_sessions()
        self._sessions: "OrderedDict[str, SessionRecord]" = OrderedDict()

    def create(self, session: BookmarkSession, pdf_path: Optional[str] = None) -> SessionRecord:
        """Register a session under a new id."""
        record = SessionRecord(session_id=str(uuid.uuid4()), session=session, pdf_path=pdf_path)
        self._sessions[record.session_id] = record

        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted session {evicted_id} (limit {self.max_sessions})")
        return record

    def get(self, session_id: str) -> SessionRecord:
        """Get session record by id.

        Raises:
            SessionNotFoundError: Unknown or evicted session
        """
        record = self._sessions.get(session_id)
        if record is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return record

    def close(self, session_id: str) -> None:
        """Drop a session and everything it holds."""
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(self._sessions)
