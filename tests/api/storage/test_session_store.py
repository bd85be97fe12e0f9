"""Tests for SessionStore - in-memory editing sessions"""
import pytest

from pdfmarks.api.storage.session_store import SessionStore
from pdfmarks.core.editing.session import BookmarkSession
from pdfmarks.core.exceptions import SessionNotFoundError
from pdfmarks.core.models.bookmark import CounterIdFactory


def _session():
    return BookmarkSession(id_factory=CounterIdFactory())


class TestSessionStore:
    """Test SessionStore registration, lookup and eviction"""

    def test_store_initialization(self):
        """Should start empty"""
        store = SessionStore(max_sessions=3)
        assert len(store) == 0

    def test_create_and_retrieve(self):
        """Should store and retrieve sessions by generated id"""
        store = SessionStore(max_sessions=3)
        record = store.create(_session(), pdf_path="doc.pdf")

        assert record.session_id in store
        assert store.get(record.session_id) is record
        assert record.pdf_path == "doc.pdf"
        assert record.created_at is not None

    def test_session_ids_are_unique(self):
        store = SessionStore(max_sessions=10)
        ids = {store.create(_session()).session_id for _ in range(5)}
        assert len(ids) == 5

    def test_oldest_session_evicted(self):
        """Should drop the oldest session when over the cap"""
        store = SessionStore(max_sessions=2)
        first = store.create(_session())
        second = store.create(_session())
        third = store.create(_session())

        assert len(store) == 2
        assert first.session_id not in store
        assert list(store) == [second.session_id, third.session_id]

    def test_get_unknown(self):
        store = SessionStore(max_sessions=2)
        with pytest.raises(SessionNotFoundError):
            store.get("missing")

    def test_close(self):
        """Should remove the session; closing twice fails"""
        store = SessionStore(max_sessions=2)
        record = store.create(_session())
        store.close(record.session_id)
        assert record.session_id not in store
        with pytest.raises(SessionNotFoundError):
            store.close(record.session_id)

    def test_cap_from_environment(self, monkeypatch):
        monkeypatch.setenv("BOOKMARK_MAX_SESSIONS", "4")
        assert SessionStore().max_sessions == 4
