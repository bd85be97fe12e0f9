"""Bookmark editing session routes"""
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from prometheus_client import Counter
from slowapi import Limiter

from pdfmarks.adapters.pdf.pymupdf import PyMuPDFOutlineAdapter
from pdfmarks.api.middleware.authentication import require_api_key
from pdfmarks.api.schemas import (
    AddBookmarkRequest,
    BatchRequest,
    BatchResponse,
    BookmarkNodeModel,
    EditBookmarkRequest,
    ImportRequest,
    ImportResponse,
    MoveBookmarkRequest,
    SaveRequest,
    SaveResponse,
    SessionCreateRequest,
    SessionResponse,
)
from pdfmarks.api.storage.session_store import SessionRecord, SessionStore
from pdfmarks.core.editing.session import BookmarkSession
from pdfmarks.core.exceptions import BookmarkNotFoundError
from pdfmarks.config.bookmark_settings import get_document_root
from pdfmarks.core.models.bookmark import NodeId, make_id_factory

logger = logging.getLogger(__name__)

IMPORT_COUNT = Counter(
    "bookmark_imports_total", "Bookmark imports", ["format", "status"])
EXPORT_COUNT = Counter(
    "bookmark_exports_total", "Bookmark exports", ["format"])

SAVE_RATE_LIMIT = "20/minute"


def _resolve_id(session: BookmarkSession, raw: str) -> NodeId:
    """Path segments arrive as text; counter ids are integers.

    A string id that looks like a number (from a JSON import) wins over the
    integer reading.
    """
    if session.find(raw) is not None:
        return raw
    try:
        return int(raw)
    except ValueError:
        return raw


def resolve_document_path(raw: str) -> str:
    """Resolve a client-supplied PDF path inside the document root.

    Relative paths are taken from the root; absolute paths must already
    point inside it.

    Raises:
        HTTPException: 400 when the path leaves the document root
    """
    root = get_document_root()
    path = (root / Path(raw)).resolve()
    if path != root and root not in path.parents:
        logger.warning(f"Rejected document path outside {root}: {raw!r}")
        raise HTTPException(status_code=400, detail=f"Path {raw!r} is outside the document directory")
    return str(path)


def session_response(record: SessionRecord) -> SessionResponse:
    session = record.session
    return SessionResponse(
        session_id=record.session_id,
        pdf_path=record.pdf_path,
        created_at=record.created_at,
        bookmark_count=session.count(),
        can_undo=session.history.can_undo(),
        can_redo=session.history.can_redo(),
        bookmarks=[BookmarkNodeModel.model_validate(node.to_dict()) for node in session.tree],
    )


def create_bookmarks_router(
    store: SessionStore,
    pdf_adapter: PyMuPDFOutlineAdapter,
    limiter: Limiter,
) -> APIRouter:
    """Create bookmark editing router.

    Args:
        store: Open editing sessions
        pdf_adapter: PDF adapter for outline extraction and saving
        limiter: The owning app's rate limiter (must be app.state.limiter)

    Returns:
        FastAPI router with session and bookmark endpoints
    """
    router = APIRouter(prefix="/api/v1/sessions", dependencies=[Depends(require_api_key)])

    @router.post("", response_model=SessionResponse, status_code=201)
    def create_session(body: SessionCreateRequest):
        id_factory = make_id_factory()
        tree = []
        if body.pdf_path:
            pdf_path = resolve_document_path(body.pdf_path)
            if body.extract_existing:
                tree = pdf_adapter.extract_bookmarks(pdf_path, id_factory)
            else:
                # Fails early on unreadable files
                pdf_adapter.get_page_count(pdf_path)

        record = store.create(BookmarkSession(tree, id_factory), pdf_path=body.pdf_path)
        logger.info(f"Opened session {record.session_id} with {record.session.count()} bookmark(s)")
        return session_response(record)

    @router.get("/{session_id}", response_model=SessionResponse)
    async def get_session(session_id: str, q: str = ""):
        record = store.get(session_id)
        response = session_response(record)
        if q:
            response.bookmarks = [
                BookmarkNodeModel.model_validate(node.to_dict())
                for node in record.session.search(q)
            ]
        return response

    @router.delete("/{session_id}", status_code=204)
    async def close_session(session_id: str):
        store.close(session_id)
        logger.info(f"Closed session {session_id}")
        return Response(status_code=204)

    @router.post("/{session_id}/bookmarks", response_model=BookmarkNodeModel, status_code=201)
    async def add_bookmark(session_id: str, body: AddBookmarkRequest):
        session = store.get(session_id).session
        node = session.add_bookmark(body.title, body.page, body.parent_id)
        return BookmarkNodeModel.model_validate(node.to_dict())

    @router.patch("/{session_id}/bookmarks/{node_id}", response_model=BookmarkNodeModel)
    async def edit_bookmark(session_id: str, node_id: str, body: EditBookmarkRequest):
        session = store.get(session_id).session
        node = session.edit_bookmark(_resolve_id(session, node_id), **body.to_changes())
        return BookmarkNodeModel.model_validate(node.to_dict())

    @router.delete("/{session_id}/bookmarks/{node_id}", response_model=SessionResponse)
    async def delete_bookmark(session_id: str, node_id: str):
        record = store.get(session_id)
        target = _resolve_id(record.session, node_id)
        if not record.session.delete_bookmark(target):
            raise BookmarkNotFoundError(target)
        return session_response(record)

    @router.post("/{session_id}/bookmarks/move", response_model=SessionResponse)
    async def move_bookmark(session_id: str, body: MoveBookmarkRequest):
        record = store.get(session_id)
        record.session.move_bookmark(body.old_index, body.new_index, body.parent_id)
        return session_response(record)

    @router.post("/{session_id}/bookmarks/batch", response_model=BatchResponse)
    async def batch_update(session_id: str, body: BatchRequest):
        record = store.get(session_id)
        session = record.session
        if body.action == "color":
            affected = session.set_color(body.ids, body.value)
        elif body.action == "style":
            affected = session.set_style(body.ids, body.value)
        else:
            affected = session.delete_bookmarks(body.ids)
        return BatchResponse(affected=affected, session=session_response(record))

    @router.delete("/{session_id}/bookmarks", response_model=SessionResponse)
    async def delete_all_bookmarks(session_id: str):
        record = store.get(session_id)
        record.session.delete_all()
        return session_response(record)

    @router.post("/{session_id}/undo", response_model=SessionResponse)
    async def undo(session_id: str):
        record = store.get(session_id)
        record.session.undo()
        return session_response(record)

    @router.post("/{session_id}/redo", response_model=SessionResponse)
    async def redo(session_id: str):
        record = store.get(session_id)
        record.session.redo()
        return session_response(record)

    @router.post("/{session_id}/import/csv", response_model=ImportResponse)
    async def import_csv(session_id: str, body: ImportRequest):
        record = store.get(session_id)
        imported = record.session.import_csv(body.content)
        IMPORT_COUNT.labels(format="csv", status="ok" if imported else "empty").inc()
        return ImportResponse(imported=imported, session=session_response(record))

    @router.post("/{session_id}/import/json", response_model=ImportResponse)
    async def import_json(session_id: str, body: ImportRequest):
        record = store.get(session_id)
        try:
            imported = record.session.import_json(body.content)
        except Exception:
            IMPORT_COUNT.labels(format="json", status="failed").inc()
            raise
        IMPORT_COUNT.labels(format="json", status="ok").inc()
        return ImportResponse(imported=imported, session=session_response(record))

    @router.get("/{session_id}/export/csv")
    async def export_csv(session_id: str):
        session = store.get(session_id).session
        EXPORT_COUNT.labels(format="csv").inc()
        return Response(session.export_csv(), media_type="text/csv")

    @router.get("/{session_id}/export/json")
    async def export_json(session_id: str):
        session = store.get(session_id).session
        EXPORT_COUNT.labels(format="json").inc()
        return Response(session.export_json(), media_type="application/json")

    @router.post("/{session_id}/save", response_model=SaveResponse)
    @limiter.limit(SAVE_RATE_LIMIT)
    def save_pdf(request: Request, session_id: str, body: SaveRequest):
        record = store.get(session_id)
        if not record.pdf_path:
            raise HTTPException(status_code=400, detail="Session has no PDF to save into")

        pdf_path = resolve_document_path(record.pdf_path)
        output_path = resolve_document_path(body.output_path)
        pdf_adapter.write_bookmarks(pdf_path, record.session.tree, output_path)
        return SaveResponse(output_path=body.output_path, bookmark_count=record.session.count())

    return router
