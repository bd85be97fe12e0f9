"""Domain models and entities.

Bookmark tree data structures.
"""

from pdfmarks.core.models.bookmark import (
    BookmarkNode,
    BookmarkTree,
    CounterIdFactory,
    UuidIdFactory,
    create_node,
    find_node,
    flatten,
    make_id_factory,
    remove_node,
)

__all__ = [
    "BookmarkNode",
    "BookmarkTree",
    "CounterIdFactory",
    "UuidIdFactory",
    "create_node",
    "find_node",
    "flatten",
    "make_id_factory",
    "remove_node",
]
