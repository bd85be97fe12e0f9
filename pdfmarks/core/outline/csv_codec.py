"""
CSV interchange format for bookmark trees.

One row per bookmark in pre-order: ``title,page,level`` where level is the
nesting depth (roots = 0). Titles are quoted RFC 4180 style when needed.
Decoding rebuilds the tree with a stack of open sibling lists; rows that do
not parse are skipped rather than failing the whole file.
"""
import logging
import re
from typing import List, Optional, Tuple

from pdfmarks.config.bookmark_settings import CSV_HEADER
from pdfmarks.core.models.bookmark import BookmarkTree, IdFactory, create_node, flatten
from pdfmarks.core.outline.text import clean_title

logger = logging.getLogger(__name__)

_QUOTED_ROW = re.compile(r'^"((?:[^"]|"")*)",(\d+),(\d+)$', re.DOTALL)
_BARE_ROW = re.compile(r'^([^,"\n]+),(\d+),(\d+)$')
_NEEDS_QUOTING = (",", '"', "\n", "\r")


def _quote(title: str) -> str:
    if not title or any(ch in title for ch in _NEEDS_QUOTING):
        return '"' + title.replace('"', '""') + '"'
    return title


def encode_csv(tree: BookmarkTree) -> str:
    """
    Serialize a bookmark tree as CSV.

    Args:
        tree: Root bookmark list

    Returns:
        CSV text with header row
    """
    lines = [CSV_HEADER]
    for node, level in flatten(tree):
        lines.append(f"{_quote(node.title)},{node.page},{level}")
    return "\n".join(lines)


def _split_records(text: str) -> List[str]:
    """Split text into rows, keeping newlines that sit inside a quoted title."""
    records = []
    pending: List[str] = []
    for line in text.split("\n"):
        pending.append(line)
        joined = "\n".join(pending)
        if joined.startswith('"') and joined.count('"') % 2 == 1:
            continue
        records.append(joined)
        pending = []
    if pending:
        # Unterminated quote: fall back to one row per line
        records.extend(pending)
    return [record.rstrip("\r") for record in records]


def _parse_row(record: str) -> Optional[Tuple[str, int, int]]:
    match = _QUOTED_ROW.match(record)
    if match:
        title = match.group(1).replace('""', '"')
    else:
        match = _BARE_ROW.match(record)
        if not match:
            return None
        title = match.group(1)
    return clean_title(title), int(match.group(2)), int(match.group(3))


def decode_csv(text: str, id_factory: Optional[IdFactory] = None) -> BookmarkTree:
    """
    Parse CSV text into a bookmark tree.

    Args:
        text: CSV text, header row optional
        id_factory: Id strategy for the new nodes

    Returns:
        New bookmark tree with fresh ids (empty if no row parsed)
    """
    roots: BookmarkTree = []
    stack = [(roots, -1)]
    skipped = 0

    for row_no, record in enumerate(_split_records(text.lstrip("\ufeff")), start=1):
        if not record.strip():
            continue
        if row_no == 1 and record.strip().lower() == CSV_HEADER:
            continue

        row = _parse_row(record)
        if row is None:
            skipped += 1
            logger.warning(f"Skipping malformed CSV row {row_no}: {record[:80]!r}")
            continue

        title, page, level = row
        node = create_node(title, page, id_factory)

        while stack[-1][1] >= level:
            stack.pop()
        stack[-1][0].append(node)
        stack.append((node.children, level))

    if skipped:
        logger.info(f"CSV import skipped {skipped} malformed row(s)")
    return roots
