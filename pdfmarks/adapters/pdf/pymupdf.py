"""PyMuPDF adapter.

Implements PdfObjectStorePort and OutlineWalkerPort using fitz (PyMuPDF),
plus a file-level adapter that composes them with the outline writer and
reader.
"""
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

import fitz

from pdfmarks.adapters.pdf.pdf_syntax import parse_array, parse_rgb, parse_xref, serialize
from pdfmarks.core.exceptions import CoreError, DestinationResolutionError, ObjectStoreError, PDFError
from pdfmarks.core.models.bookmark import BookmarkTree, IdFactory
from pdfmarks.core.outline.colors import FLAG_BOLD, FLAG_ITALIC
from pdfmarks.core.outline.reader import read_outline
from pdfmarks.core.outline.writer import write_outline
from pdfmarks.core.ports.pdf import (
    OutlineItem,
    OutlineWalkerPort,
    PdfName,
    PdfObjectStorePort,
    PdfRef,
    RawDestination,
)

logger = logging.getLogger(__name__)


class FitzObjectStore(PdfObjectStorePort):
    """Object store over an open fitz document.

    Allocated dictionaries are only serialized into the document when the
    catalog is pointed at the new outline.
    """

    def __init__(self, doc: "fitz.Document"):
        self.doc = doc
        self._pending: List[Tuple[int, Dict[str, Any]]] = []

    def allocate(self, obj: Dict[str, Any]) -> PdfRef:
        try:
            xref = self.doc.get_new_xref()
        except Exception as e:
            raise ObjectStoreError(f"Failed to allocate PDF object: {e}") from e
        self._pending.append((xref, obj))
        return PdfRef(xref)

    def page_ref(self, page_index: int) -> PdfRef:
        try:
            return PdfRef(self.doc.page_xref(page_index))
        except Exception as e:
            raise ObjectStoreError(f"Failed to resolve page {page_index}: {e}") from e

    def page_count(self) -> int:
        return self.doc.page_count

    def set_catalog_outlines(self, ref: PdfRef) -> None:
        try:
            for xref, obj in self._pending:
                self.doc.update_object(xref, serialize(obj))
            self.doc.xref_set_key(self.doc.pdf_catalog(), "Outlines", str(ref))
        except Exception as e:
            raise ObjectStoreError(f"Failed to install outline: {e}") from e
        logger.debug(f"Installed {len(self._pending)} outline objects, catalog -> {ref}")
        self._pending.clear()


class FitzOutlineWalker(OutlineWalkerPort):
    """Outline walker reading raw outline dictionaries through fitz."""

    def __init__(self, doc: "fitz.Document"):
        self.doc = doc
        self._page_index: Optional[Dict[int, int]] = None
        self._names: Optional[Dict[str, Any]] = None

    def get_outline(self) -> List[OutlineItem]:
        kind, value = self.doc.xref_get_key(self.doc.pdf_catalog(), "Outlines")
        if kind != "xref":
            return []
        return self._read_siblings(parse_xref(value), set())

    def _read_siblings(self, parent_xref: Optional[int], visited: Set[int]) -> List[OutlineItem]:
        items = []
        xref = self._linked_xref(parent_xref, "First")
        # Corrupt outlines can loop back on themselves
        while xref is not None and xref not in visited:
            visited.add(xref)
            items.append(self._read_item(xref, visited))
            xref = self._linked_xref(xref, "Next")
        return items

    def _linked_xref(self, xref: Optional[int], key: str) -> Optional[int]:
        if xref is None:
            return None
        kind, value = self.doc.xref_get_key(xref, key)
        return parse_xref(value) if kind == "xref" else None

    def _read_item(self, xref: int, visited: Set[int]) -> OutlineItem:
        kind, title = self.doc.xref_get_key(xref, "Title")

        flags = 0
        f_kind, f_value = self.doc.xref_get_key(xref, "F")
        if f_kind == "int":
            flags = int(f_value)

        color = None
        c_kind, c_value = self.doc.xref_get_key(xref, "C")
        if c_kind == "array":
            color = parse_rgb(c_value)

        return OutlineItem(
            title=title if kind == "string" else "",
            dest=self._raw_destination(xref),
            color=color,
            bold=bool(flags & FLAG_BOLD),
            italic=bool(flags & FLAG_ITALIC),
            children=self._read_siblings(xref, visited),
        )

    def _raw_destination(self, xref: int) -> RawDestination:
        kind, value = self.doc.xref_get_key(xref, "Dest")
        if kind == "null":
            _, action = self.doc.xref_get_key(xref, "A/S")
            if action != "/GoTo":
                return None
            kind, value = self.doc.xref_get_key(xref, "A/D")
        return self._decode_destination(kind, value)

    def _decode_destination(self, kind: str, value: str) -> RawDestination:
        if kind == "array":
            return parse_array(value)
        if kind == "name":
            return value.lstrip("/")
        if kind == "string":
            return value
        if kind == "xref":
            # Loaded by the reader, inside its per-item recovery
            num = parse_xref(value)
            return PdfRef(num) if num is not None else None
        return None

    def resolve_indirect_destination(self, ref: PdfRef) -> List[Any]:
        try:
            source = self.doc.xref_object(ref.num, compressed=True)
        except Exception as e:
            raise DestinationResolutionError(f"Cannot load destination {ref}: {e}") from e

        source = source.lstrip()
        if source.startswith("["):
            return parse_array(source)
        # Destination dictionary: << /D [...] >>
        kind, value = self.doc.xref_get_key(ref.num, "D")
        if kind == "array":
            return parse_array(value)
        raise DestinationResolutionError(f"{ref} is not a destination")

    def resolve_named_destination(self, name: str) -> Optional[List[Any]]:
        if self._names is None:
            self._names = self.doc.resolve_names()
        entry = self._names.get(name)
        if not entry or entry.get("page", -1) < 0:
            return None
        to = entry.get("to") or (None, None)
        return [
            PdfRef(self.doc.page_xref(entry["page"])),
            PdfName("XYZ"),
            to[0],
            to[1],
            entry.get("zoom"),
        ]

    def page_index_of(self, ref: Any) -> int:
        if isinstance(ref, PdfRef):
            if self._page_index is None:
                self._page_index = {
                    self.doc.page_xref(i): i for i in range(self.doc.page_count)
                }
            if ref.num not in self._page_index:
                raise DestinationResolutionError(f"{ref} is not a page object")
            return self._page_index[ref.num]
        # Some writers store a plain page number instead of a reference
        if isinstance(ref, int) and not isinstance(ref, bool) and 0 <= ref < self.doc.page_count:
            return ref
        raise DestinationResolutionError(f"Unsupported page reference {ref!r}")


class PyMuPDFOutlineAdapter:
    """File-level bookmark operations on PDFs via PyMuPDF."""

    def get_page_count(self, path: str) -> int:
        """Get total page count.

        Args:
            path: Path to PDF file

        Returns:
            Number of pages in the PDF
        """
        try:
            with fitz.open(path) as doc:
                return doc.page_count
        except Exception as e:
            raise PDFError(f"Failed to get page count from {path}: {e}") from e

    def extract_bookmarks(self, path: str, id_factory: Optional[IdFactory] = None) -> BookmarkTree:
        """Extract the existing outline of a PDF.

        Args:
            path: Path to PDF file
            id_factory: Id strategy for the new nodes

        Returns:
            Bookmark tree (empty if the PDF has no outline)
        """
        try:
            with fitz.open(path) as doc:
                return read_outline(FitzOutlineWalker(doc), id_factory)
        except CoreError:
            raise
        except Exception as e:
            raise PDFError(f"Failed to extract bookmarks from {path}: {e}") from e

    def write_bookmarks(self, path: str, tree: BookmarkTree, output_path: str) -> None:
        """Write ``tree`` as the outline of ``path`` and save to ``output_path``.

        An empty tree keeps the document's existing outline.

        Args:
            path: Source PDF
            tree: Bookmark tree to write
            output_path: Destination file (must differ from ``path``)
        """
        try:
            with fitz.open(path) as doc:
                write_outline(tree, FitzObjectStore(doc))
                doc.save(output_path, garbage=1)
        except CoreError:
            raise
        except Exception as e:
            raise PDFError(f"Failed to write bookmarks to {output_path}: {e}") from e
        logger.info(f"Saved bookmarked PDF to {output_path}")
