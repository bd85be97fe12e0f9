"""
JSON interchange format for bookmark trees.

Structural passthrough of the tree including ids. Unlike CSV there is no
per-row recovery: any syntax or shape error rejects the whole document.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Set

from pdfmarks.config.bookmark_settings import JSON_INDENT
from pdfmarks.core.exceptions import MalformedInputError
from pdfmarks.core.models.bookmark import BookmarkNode, BookmarkTree, IdFactory, NodeId, iter_nodes, next_id
from pdfmarks.core.outline.text import clean_title

logger = logging.getLogger(__name__)


def tree_to_dicts(tree: BookmarkTree) -> List[Dict[str, Any]]:
    return [node.to_dict() for node in tree]


def encode_json(tree: BookmarkTree, indent: Optional[int] = JSON_INDENT) -> str:
    """
    Serialize a bookmark tree as JSON.

    Args:
        tree: Root bookmark list
        indent: Pretty-print indentation (None for compact)

    Returns:
        JSON array of node objects
    """
    return json.dumps(tree_to_dicts(tree), indent=indent, ensure_ascii=False)


def _optional_number(raw: Dict[str, Any], key: str, path: str) -> Optional[float]:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedInputError(f"{path}.{key} must be a number or null")
    return value


def _explicit_id(raw: Dict[str, Any], path: str, seen: Set[NodeId]) -> Optional[NodeId]:
    node_id = raw.get("id")
    if node_id is None:
        return None
    if isinstance(node_id, bool) or not isinstance(node_id, (int, float, str)):
        raise MalformedInputError(f"{path}.id must be a number or string")
    # 3.0 and 3 are the same id
    if isinstance(node_id, float) and node_id.is_integer():
        node_id = int(node_id)
    if node_id in seen:
        raise MalformedInputError(f"{path}.id {node_id!r} is used by more than one bookmark")
    seen.add(node_id)
    return node_id


def _node_from_dict(raw: Any, path: str, seen: Set[NodeId]) -> BookmarkNode:
    if not isinstance(raw, dict):
        raise MalformedInputError(f"{path} must be an object")

    page = raw.get("page")
    if isinstance(page, bool) or not isinstance(page, int):
        raise MalformedInputError(f"{path}.page must be an integer")

    node_id = _explicit_id(raw, path, seen)

    color = raw.get("color")
    style = raw.get("style")
    zoom = raw.get("zoom")
    for key, value in (("color", color), ("style", style)):
        if value is not None and not isinstance(value, str):
            raise MalformedInputError(f"{path}.{key} must be a string or null")
    if zoom is not None:
        if isinstance(zoom, bool) or not isinstance(zoom, (str, int, float)):
            raise MalformedInputError(f"{path}.zoom must be a string or null")
        zoom = str(zoom)

    children_raw = raw.get("children")
    if children_raw is None:
        children_raw = []
    elif not isinstance(children_raw, list):
        raise MalformedInputError(f"{path}.children must be an array")

    return BookmarkNode(
        id=node_id,
        title=clean_title(raw.get("title")),
        page=page,
        children=[
            _node_from_dict(child, f"{path}.children[{i}]", seen)
            for i, child in enumerate(children_raw)
        ],
        color=color,
        style=style,
        dest_x=_optional_number(raw, "destX", path),
        dest_y=_optional_number(raw, "destY", path),
        zoom=zoom,
    )


def decode_json(text: str, id_factory: Optional[IdFactory] = None) -> BookmarkTree:
    """
    Parse a JSON document into a bookmark tree.

    Args:
        text: JSON array of node objects
        id_factory: Id strategy for nodes that carry no id

    Returns:
        Bookmark tree with ids preserved and titles sanitized

    Raises:
        MalformedInputError: Invalid JSON, unexpected structure or a repeated id
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"Invalid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise MalformedInputError("Bookmark JSON must be an array of nodes")

    seen: Set[NodeId] = set()
    tree = [_node_from_dict(raw, f"[{i}]", seen) for i, raw in enumerate(parsed)]

    # Fresh ids are drawn only once every explicit id is known
    for node in iter_nodes(tree):
        if node.id is None:
            node_id = next_id(id_factory)
            while node_id in seen:
                node_id = next_id(id_factory)
            node.id = node_id
            seen.add(node_id)

    logger.debug(f"Decoded {len(tree)} root bookmark(s) from JSON")
    return tree
