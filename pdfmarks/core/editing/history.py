"""
Undo/Redo history for bookmark trees.

Linear history: committing after an undo discards the redo tail.
"""
import copy
from typing import List, Optional

from pdfmarks.core.models.bookmark import BookmarkTree


class History:
    """Snapshots of a bookmark tree plus a cursor (-1 = empty)."""

    def __init__(self):
        self.snapshots: List[BookmarkTree] = []
        self.cursor = -1

    def commit(self, tree: BookmarkTree) -> None:
        """
        Record ``tree`` as the newest state.

        Args:
            tree: Current tree; a deep copy is stored so later edits
                cannot reach the snapshot
        """
        del self.snapshots[self.cursor + 1:]
        self.snapshots.append(copy.deepcopy(tree))
        self.cursor += 1

    def can_undo(self) -> bool:
        return self.cursor > 0

    def can_redo(self) -> bool:
        return self.cursor < len(self.snapshots) - 1

    def undo(self) -> Optional[BookmarkTree]:
        """
        Step back one state.

        Returns:
            Deep copy of the previous snapshot, or None if at the oldest state
        """
        if not self.can_undo():
            return None
        self.cursor -= 1
        return copy.deepcopy(self.snapshots[self.cursor])

    def redo(self) -> Optional[BookmarkTree]:
        """
        Step forward one state.

        Returns:
            Deep copy of the next snapshot, or None if at the newest state
        """
        if not self.can_redo():
            return None
        self.cursor += 1
        return copy.deepcopy(self.snapshots[self.cursor])

    def current(self) -> Optional[BookmarkTree]:
        """Deep copy of the snapshot under the cursor."""
        if self.cursor < 0:
            return None
        return copy.deepcopy(self.snapshots[self.cursor])

    def reset(self, tree: Optional[BookmarkTree] = None) -> None:
        """Drop all snapshots; commit ``tree`` as the first one if given."""
        self.snapshots.clear()
        self.cursor = -1
        if tree is not None:
            self.commit(tree)

    def __len__(self) -> int:
        return len(self.snapshots)
