"""
OutlineReader - Convert an existing PDF outline into a bookmark tree.

Destinations are resolved per item: a failure on one item is logged and
that bookmark falls back to page 1 with no explicit view, the rest of the
walk continues.
"""
import logging
from typing import Any, Optional, Tuple

from pdfmarks.core.exceptions import DestinationResolutionError, PDFError
from pdfmarks.core.models.bookmark import BookmarkNode, BookmarkTree, IdFactory, count_nodes, next_id
from pdfmarks.core.outline.colors import classify_rgb, style_from_flags
from pdfmarks.core.outline.text import clean_title
from pdfmarks.core.ports.pdf import OutlineItem, OutlineWalkerPort, PdfRef, RawDestination

logger = logging.getLogger(__name__)

# (page, dest_x, dest_y, zoom)
ResolvedDestination = Tuple[int, Optional[float], Optional[float], Optional[str]]

_NO_DESTINATION: ResolvedDestination = (1, None, None, None)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class OutlineReader:
    """Read bookmark trees through an outline walker."""

    def __init__(self, walker: OutlineWalkerPort, id_factory: Optional[IdFactory] = None):
        self.walker = walker
        self.id_factory = id_factory

    def read(self) -> BookmarkTree:
        """
        Extract the document outline.

        Returns:
            New bookmark tree with fresh ids (empty if there is no outline)

        Raises:
            PDFError: The walker could not list the outline at all
        """
        try:
            items = self.walker.get_outline() or []
        except Exception as e:
            raise PDFError(f"Failed to read document outline: {e}") from e

        tree = [self._convert(item) for item in items]
        logger.info(f"Extracted {count_nodes(tree)} bookmark(s) from outline")
        return tree

    def _convert(self, item: OutlineItem) -> BookmarkNode:
        try:
            page, dest_x, dest_y, zoom = self._resolve_destination(item.dest)
        except Exception as e:
            logger.warning(f"Error resolving destination for {item.title!r}: {e}")
            page, dest_x, dest_y, zoom = _NO_DESTINATION

        return BookmarkNode(
            id=next_id(self.id_factory),
            title=clean_title(item.title),
            page=page,
            children=[self._convert(child) for child in item.children or []],
            color=classify_rgb(item.color),
            style=style_from_flags(bool(item.bold), bool(item.italic)),
            dest_x=dest_x,
            dest_y=dest_y,
            zoom=zoom,
        )

    def _resolve_destination(self, dest: RawDestination) -> ResolvedDestination:
        # PdfRef is a tuple, so check it before treating dest as an array
        if isinstance(dest, PdfRef):
            dest = self.walker.resolve_indirect_destination(dest)
        elif isinstance(dest, str):
            resolved = self.walker.resolve_named_destination(dest)
            if resolved is None:
                raise DestinationResolutionError(f"Unknown named destination {dest!r}")
            dest = resolved

        if dest is None:
            return _NO_DESTINATION
        if not isinstance(dest, (list, tuple)) or not dest:
            raise DestinationResolutionError(f"Unsupported destination {dest!r}")

        page_index = self.walker.page_index_of(dest[0])
        if not isinstance(page_index, int) or page_index < 0:
            raise DestinationResolutionError(f"Invalid page index {page_index!r}")

        dest_x = dest_y = zoom = None
        # [page /XYZ left top zoom]
        if len(dest) >= 5:
            if _is_number(dest[2]):
                dest_x = dest[2]
            if _is_number(dest[3]):
                dest_y = dest[3]
            if _is_number(dest[4]):
                zoom = str(round(dest[4] * 100))

        return page_index + 1, dest_x, dest_y, zoom


def read_outline(walker: OutlineWalkerPort, id_factory: Optional[IdFactory] = None) -> BookmarkTree:
    """Extract ``walker``'s outline as a new bookmark tree."""
    return OutlineReader(walker, id_factory).read()
