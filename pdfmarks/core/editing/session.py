"""
BookmarkSession - One document's bookmark tree and its undo history.

Every edit works on a fresh deep copy of the current tree and ends with
exactly one History.commit, batch edits included. Imports and outline
extraction replace the tree and reset the history.
"""
import copy
import logging
from typing import Any, Iterable, Optional

from pdfmarks.core.editing.history import History
from pdfmarks.core.exceptions import BookmarkNotFoundError, ValidationError
from pdfmarks.core.models.bookmark import (
    STYLES,
    BookmarkNode,
    BookmarkTree,
    IdFactory,
    NodeId,
    apply_to_ids,
    collect_ids,
    count_nodes,
    create_node,
    filter_tree,
    find_node,
    make_id_factory,
    move_sibling,
    remove_many,
    remove_node,
)
from pdfmarks.core.outline.colors import normalize_color
from pdfmarks.core.outline.csv_codec import decode_csv, encode_csv
from pdfmarks.core.outline.json_codec import decode_json, encode_json
from pdfmarks.core.outline.reader import read_outline
from pdfmarks.core.outline.text import clean_title
from pdfmarks.core.outline.writer import write_outline
from pdfmarks.core.ports.pdf import OutlineWalkerPort, PdfObjectStorePort, PdfRef

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "page", "color", "style", "dest_x", "dest_y", "zoom")


def _validate_style(style: Optional[str]) -> Optional[str]:
    if not style:
        return None
    if style not in STYLES:
        raise ValidationError(f"Unsupported style {style!r}, expected one of {STYLES}")
    return style


def _validate_color(color: Optional[str]) -> Optional[str]:
    try:
        return normalize_color(color)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _validate_page(page: Any) -> int:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError(f"Page must be a positive integer, got {page!r}")
    return page


class BookmarkSession:
    """Editing session owning a bookmark tree plus its history."""

    def __init__(self, tree: Optional[BookmarkTree] = None, id_factory: Optional[IdFactory] = None):
        self.id_factory = id_factory or make_id_factory()
        self.history = History()
        self._tree: BookmarkTree = []
        self.load(tree or [])

    @property
    def tree(self) -> BookmarkTree:
        """Copy of the current tree; edit through session methods."""
        return copy.deepcopy(self._tree)

    def _commit(self, working: BookmarkTree) -> None:
        self._tree = working
        self.history.commit(working)

    def _working_copy(self) -> BookmarkTree:
        return copy.deepcopy(self._tree)

    def load(self, tree: BookmarkTree) -> None:
        """Replace the tree and start a fresh history."""
        advance = getattr(self.id_factory, "advance_past", None)
        if advance is not None:
            advance(collect_ids(tree))
        self._tree = copy.deepcopy(tree)
        self.history.reset(self._tree)

    # Edits

    def add_bookmark(self, title: str, page: int, parent_id: Optional[NodeId] = None) -> BookmarkNode:
        """
        Add a bookmark at the top level or as the last child of ``parent_id``.

        Args:
            title: Bookmark title (control characters stripped)
            page: Target page (1-indexed)
            parent_id: Parent bookmark id, None for top level

        Returns:
            Copy of the new node
        """
        node = create_node(clean_title(title), _validate_page(page), self.id_factory)
        working = self._working_copy()

        if parent_id is None:
            working.append(node)
        else:
            parent = find_node(working, parent_id)
            if parent is None:
                raise BookmarkNotFoundError(parent_id)
            parent.children.append(node)

        self._commit(working)
        return copy.deepcopy(node)

    def edit_bookmark(self, node_id: NodeId, **changes: Any) -> BookmarkNode:
        """
        Update fields of one bookmark.

        Args:
            node_id: Bookmark to edit
            **changes: Any of title, page, color, style, dest_x, dest_y, zoom

        Returns:
            Copy of the updated node
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown bookmark field(s): {', '.join(sorted(unknown))}")

        working = self._working_copy()
        node = find_node(working, node_id)
        if node is None:
            raise BookmarkNotFoundError(node_id)

        if "title" in changes:
            node.title = clean_title(changes["title"])
        if "page" in changes:
            node.page = _validate_page(changes["page"])
        if "color" in changes:
            node.color = _validate_color(changes["color"])
        if "style" in changes:
            node.style = _validate_style(changes["style"])
        for key in ("dest_x", "dest_y", "zoom"):
            if key in changes:
                setattr(node, key, changes[key])

        self._commit(working)
        return copy.deepcopy(node)

    def delete_bookmark(self, node_id: NodeId) -> bool:
        """Delete one bookmark and its subtree. Returns False if not found."""
        working = self._working_copy()
        if not remove_node(working, node_id):
            return False
        self._commit(working)
        return True

    def delete_bookmarks(self, node_ids: Iterable[NodeId]) -> int:
        """Delete every listed bookmark in one step. Returns removed count."""
        working = self._working_copy()
        removed = remove_many(working, node_ids)
        if removed:
            self._commit(working)
        return removed

    def delete_all(self) -> None:
        self._commit([])

    def set_color(self, node_ids: Iterable[NodeId], color: Optional[str]) -> int:
        """Apply one color to every listed bookmark in one step."""
        color = _validate_color(color)
        return self._apply(node_ids, lambda node: setattr(node, "color", color))

    def set_style(self, node_ids: Iterable[NodeId], style: Optional[str]) -> int:
        """Apply one style to every listed bookmark in one step."""
        style = _validate_style(style)
        return self._apply(node_ids, lambda node: setattr(node, "style", style))

    def _apply(self, node_ids: Iterable[NodeId], fn) -> int:
        working = self._working_copy()
        matched = apply_to_ids(working, node_ids, fn)
        if matched:
            self._commit(working)
        return matched

    def move_bookmark(self, old_index: int, new_index: int, parent_id: Optional[NodeId] = None) -> None:
        """Reorder a bookmark among its siblings."""
        if old_index == new_index:
            return
        working = self._working_copy()
        try:
            move_sibling(working, old_index, new_index, parent_id)
        except IndexError as e:
            raise ValidationError(str(e)) from e
        self._commit(working)

    # History

    def undo(self) -> bool:
        """Restore the previous state. Returns False when there is nothing to undo."""
        previous = self.history.undo()
        if previous is None:
            return False
        self._tree = previous
        return True

    def redo(self) -> bool:
        """Restore the next state. Returns False when there is nothing to redo."""
        following = self.history.redo()
        if following is None:
            return False
        self._tree = following
        return True

    # Queries

    def find(self, node_id: NodeId) -> Optional[BookmarkNode]:
        node = find_node(self._tree, node_id)
        return copy.deepcopy(node) if node is not None else None

    def search(self, query: str) -> BookmarkTree:
        return copy.deepcopy(filter_tree(self._tree, query))

    def count(self) -> int:
        return count_nodes(self._tree)

    # Import / export

    def import_csv(self, text: str) -> int:
        """
        Replace the tree with bookmarks parsed from CSV.

        Args:
            text: CSV text

        Returns:
            Number of imported bookmarks (0 leaves the tree untouched)
        """
        imported = decode_csv(text, self.id_factory)
        if not imported:
            logger.info("CSV contained no bookmarks; keeping current tree")
            return 0
        self.load(imported)
        return count_nodes(imported)

    def import_json(self, text: str) -> int:
        """
        Replace the tree with bookmarks parsed from JSON.

        Raises:
            MalformedInputError: Invalid document; the tree is left untouched
        """
        imported = decode_json(text, self.id_factory)
        self.load(imported)
        return count_nodes(imported)

    def extract_outline(self, walker: OutlineWalkerPort) -> int:
        """Replace the tree with the document's existing outline, if it has one."""
        extracted = read_outline(walker, self.id_factory)
        if not extracted:
            logger.info("No existing bookmarks found in document")
            return 0
        self.load(extracted)
        return count_nodes(extracted)

    def export_csv(self) -> str:
        return encode_csv(self._tree)

    def export_json(self) -> str:
        return encode_json(self._tree)

    def write_outline(self, store: PdfObjectStorePort) -> Optional[PdfRef]:
        """Write the current tree into ``store`` as the document outline."""
        return write_outline(self._tree, store)
