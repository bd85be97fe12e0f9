"""
Bookmark tree model.

Domain model for an editable PDF bookmark (outline) tree plus the
structural operations the editor and codecs share.
"""

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from pdfmarks.config.bookmark_settings import get_id_strategy
from pdfmarks.core.exceptions import BookmarkNotFoundError

NodeId = Union[int, str]

STYLE_BOLD = "bold"
STYLE_ITALIC = "italic"
STYLE_BOLD_ITALIC = "bold-italic"
STYLES = (STYLE_BOLD, STYLE_ITALIC, STYLE_BOLD_ITALIC)


@dataclass
class BookmarkNode:
    """Single bookmark with its nested children.

    The order of ``children`` is both display order and outline sibling order.
    """

    id: NodeId
    title: str
    page: int  # 1-indexed target page
    children: List["BookmarkNode"] = field(default_factory=list)
    color: Optional[str] = None  # named color, "#rrggbb", or None
    style: Optional[str] = None  # bold / italic / bold-italic, or None
    dest_x: Optional[float] = None
    dest_y: Optional[float] = None
    zoom: Optional[str] = None  # percentage string, "0"/"" = fit page

    @property
    def has_destination(self) -> bool:
        """True when any explicit view coordinate is set."""
        return self.dest_x is not None or self.dest_y is not None or self.zoom is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "page": self.page,
            "children": [child.to_dict() for child in self.children],
            "color": self.color,
            "style": self.style,
            "destX": self.dest_x,
            "destY": self.dest_y,
            "zoom": self.zoom,
        }


BookmarkTree = List[BookmarkNode]


# Id strategies

class CounterIdFactory:
    """Monotonic integer ids, unique for the lifetime of the factory."""

    def __init__(self, start: int = 1):
        self._next = start

    def __call__(self) -> int:
        value = self._next
        self._next += 1
        return value

    def advance_past(self, ids: Iterable[NodeId]) -> None:
        """Make sure future ids are larger than every numeric id given."""
        numeric = [i for i in ids if isinstance(i, (int, float)) and not isinstance(i, bool)]
        highest = max(numeric, default=None)
        if highest is not None and highest >= self._next:
            self._next = math.floor(highest) + 1


class UuidIdFactory:
    """Random hex ids."""

    def __call__(self) -> str:
        return uuid.uuid4().hex

    def advance_past(self, ids: Iterable[NodeId]) -> None:
        pass


IdFactory = Callable[[], NodeId]


def make_id_factory(strategy: Optional[str] = None) -> IdFactory:
    """
    Build an id factory for the configured strategy.

    Args:
        strategy: "counter" or "uuid" (default: BOOKMARK_ID_STRATEGY env)

    Returns:
        Callable returning a fresh id on every call
    """
    strategy = strategy or get_id_strategy()
    if strategy == "uuid":
        return UuidIdFactory()
    if strategy == "counter":
        return CounterIdFactory()
    raise ValueError(f"Unknown id strategy: {strategy}")


_default_ids = CounterIdFactory()


# Structural operations

def next_id(id_factory: Optional[IdFactory] = None) -> NodeId:
    """Draw an id from ``id_factory`` or the process-wide counter."""
    return (id_factory or _default_ids)()


def create_node(title: str, page: int, id_factory: Optional[IdFactory] = None) -> BookmarkNode:
    """Create a leaf bookmark with a fresh id and no color/style/destination."""
    return BookmarkNode(id=next_id(id_factory), title=title, page=page)


def iter_nodes(tree: BookmarkTree) -> Iterator[BookmarkNode]:
    """Walk every node in pre-order."""
    for node in tree:
        yield node
        yield from iter_nodes(node.children)


def find_node(tree: BookmarkTree, node_id: NodeId) -> Optional[BookmarkNode]:
    """
    Find a bookmark by id.

    Args:
        tree: Root bookmark list
        node_id: Id to look for

    Returns:
        First match in pre-order depth-first search, or None
    """
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


def find_parent(tree: BookmarkTree, node_id: NodeId) -> Optional[BookmarkNode]:
    """Return the parent of ``node_id``, or None for roots and unknown ids."""
    for node in iter_nodes(tree):
        if any(child.id == node_id for child in node.children):
            return node
    return None


def remove_node(tree: BookmarkTree, node_id: NodeId) -> bool:
    """
    Remove the first node with ``node_id`` (and its subtree).

    Args:
        tree: Root bookmark list, modified in place
        node_id: Id to remove

    Returns:
        True if a node was removed
    """
    for i, node in enumerate(tree):
        if node.id == node_id:
            del tree[i]
            return True
        if remove_node(node.children, node_id):
            return True
    return False


def remove_many(tree: BookmarkTree, node_ids: Iterable[NodeId]) -> int:
    """Remove every node whose id is in ``node_ids``. Returns removed count."""
    targets = set(node_ids)
    removed = 0

    def _prune(nodes: BookmarkTree) -> None:
        nonlocal removed
        kept = []
        for node in nodes:
            if node.id in targets:
                removed += 1
                continue
            _prune(node.children)
            kept.append(node)
        nodes[:] = kept

    _prune(tree)
    return removed


def flatten(tree: BookmarkTree, level: int = 0) -> List[Tuple[BookmarkNode, int]]:
    """
    Flatten the tree into ``(node, depth)`` pairs in pre-order.

    Args:
        tree: Root bookmark list
        level: Depth assigned to the given list (roots = 0)

    Returns:
        List of (node, depth) tuples
    """
    result = []
    for node in tree:
        result.append((node, level))
        result.extend(flatten(node.children, level + 1))
    return result


def collect_ids(tree: BookmarkTree) -> List[NodeId]:
    """All ids in pre-order."""
    return [node.id for node in iter_nodes(tree)]


def count_nodes(tree: BookmarkTree) -> int:
    return sum(1 for _ in iter_nodes(tree))


def matches_search(node: BookmarkNode, query: str) -> bool:
    """True if the node or any descendant title contains ``query`` (case-insensitive)."""
    if not query:
        return True
    if query.lower() in node.title.lower():
        return True
    return any(matches_search(child, query) for child in node.children)


def filter_tree(tree: BookmarkTree, query: str) -> BookmarkTree:
    """Root nodes whose subtree matches ``query``."""
    return [node for node in tree if matches_search(node, query)]


def apply_to_ids(
    tree: BookmarkTree,
    node_ids: Iterable[NodeId],
    fn: Callable[[BookmarkNode], None],
) -> int:
    """Apply ``fn`` to every node whose id is in ``node_ids``. Returns match count."""
    targets = set(node_ids)
    count = 0
    for node in iter_nodes(tree):
        if node.id in targets:
            fn(node)
            count += 1
    return count


def move_sibling(
    tree: BookmarkTree,
    old_index: int,
    new_index: int,
    parent_id: Optional[NodeId] = None,
) -> None:
    """
    Reorder a node within its sibling list.

    Args:
        tree: Root bookmark list, modified in place
        old_index: Current position among siblings
        new_index: Target position among siblings
        parent_id: Parent whose children are reordered (None = top level)

    Raises:
        BookmarkNotFoundError: parent_id is not in the tree
        IndexError: old_index is out of range
    """
    if parent_id is None:
        siblings = tree
    else:
        parent = find_node(tree, parent_id)
        if parent is None:
            raise BookmarkNotFoundError(parent_id)
        siblings = parent.children

    if not 0 <= old_index < len(siblings):
        raise IndexError(f"Sibling index {old_index} out of range")
    moved = siblings.pop(old_index)
    siblings.insert(max(0, min(new_index, len(siblings))), moved)
