"""
OutlineWriter - Build a PDF outline object graph from a bookmark tree.

Every bookmark becomes an indirect outline item dictionary linked to its
siblings (Prev/Next), its parent (Parent) and its children
(First/Last/Count). The catalog's /Outlines entry is swapped only after the
whole chain has been built, so a failed write never leaves a partial outline
in the document.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from pdfmarks.core.exceptions import ObjectStoreError
from pdfmarks.core.models.bookmark import BookmarkNode, BookmarkTree
from pdfmarks.core.outline.colors import color_to_rgb, style_to_flags
from pdfmarks.core.ports.pdf import PdfName, PdfObjectStorePort, PdfRef

logger = logging.getLogger(__name__)

OutlineEntry = Tuple[PdfRef, Dict[str, Any]]


def parse_zoom(zoom: Optional[str]) -> Optional[float]:
    """
    Convert a percentage zoom string to the /XYZ zoom factor.

    Args:
        zoom: Percentage string such as "150"

    Returns:
        Zoom factor (1.5), or None for unset, "", "0" (fit page) and non-numeric values
    """
    if zoom is None or str(zoom).strip() in ("", "0"):
        return None
    try:
        factor = float(zoom) / 100
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric zoom {zoom!r}")
        return None
    return factor or None


class OutlineWriter:
    """Serialize bookmark trees into a PDF object store."""

    def __init__(self, store: PdfObjectStorePort):
        self.store = store
        self._page_count = 0

    def write(self, tree: BookmarkTree) -> Optional[PdfRef]:
        """
        Write ``tree`` as the document outline.

        Args:
            tree: Root bookmark list

        Returns:
            Reference to the new /Outlines dictionary, or None for an empty
            tree (the existing outline is left untouched)

        Raises:
            ObjectStoreError: Any store failure; the catalog is not modified
        """
        if not tree:
            logger.info("No bookmarks to write; leaving existing outline untouched")
            return None

        try:
            self._page_count = self.store.page_count()
            if self._page_count < 1:
                raise ObjectStoreError("Document has no pages to link bookmarks to")

            outlines: Dict[str, Any] = {"Type": PdfName("Outlines")}
            outlines_ref = self.store.allocate(outlines)

            items = self._build_items(tree, outlines_ref)
            outlines["First"] = items[0][0]
            outlines["Last"] = items[-1][0]
            outlines["Count"] = len(items)

            self.store.set_catalog_outlines(outlines_ref)
        except ObjectStoreError:
            raise
        except Exception as e:
            raise ObjectStoreError(f"Failed to write outline: {e}") from e

        logger.info(f"Wrote outline with {len(tree)} top-level bookmark(s)")
        return outlines_ref

    def _build_items(self, nodes: List[BookmarkNode], parent_ref: PdfRef) -> List[OutlineEntry]:
        """Allocate one sibling list and link it Prev/Next."""
        items: List[OutlineEntry] = []

        for node in nodes:
            item: Dict[str, Any] = {"Title": node.title, "Parent": parent_ref}
            ref = self.store.allocate(item)

            item["Dest"] = self._destination(node)

            rgb = color_to_rgb(node.color)
            if rgb:
                item["C"] = rgb

            flags = style_to_flags(node.style)
            if flags:
                item["F"] = flags

            if node.children:
                children = self._build_items(node.children, ref)
                item["First"] = children[0][0]
                item["Last"] = children[-1][0]
                item["Count"] = len(children)

            items.append((ref, item))

        for (prev_ref, prev_item), (next_ref, next_item) in zip(items, items[1:]):
            prev_item["Next"] = next_ref
            next_item["Prev"] = prev_ref

        return items

    def _destination(self, node: BookmarkNode) -> List[Any]:
        """Build ``[page /XYZ x y zoom]``; unset slots are null (inherit)."""
        page_index = max(0, min(node.page - 1, self._page_count - 1))
        page_ref = self.store.page_ref(page_index)

        if not node.has_destination:
            return [page_ref, PdfName("XYZ"), None, None, None]
        return [page_ref, PdfName("XYZ"), node.dest_x, node.dest_y, parse_zoom(node.zoom)]


def write_outline(tree: BookmarkTree, store: PdfObjectStorePort) -> Optional[PdfRef]:
    """Write ``tree`` into ``store`` and register it as the catalog outline."""
    return OutlineWriter(store).write(tree)
