"""PDF port interfaces.

Defines the contracts the outline writer and reader depend on. Core code
depends only on these abstractions, not on specific implementations like
PyMuPDF.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from pdfmarks.core.exceptions import DestinationResolutionError


class PdfName(str):
    """PDF name object (``/XYZ``), stored without the leading slash."""

    def __repr__(self) -> str:
        return f"/{str(self)}"


class PdfRef(NamedTuple):
    """Indirect reference to a PDF object."""
    num: int
    gen: int = 0

    def __str__(self) -> str:
        return f"{self.num} {self.gen} R"


# Raw destination as yielded by a walker: a name to look up, an explicit array,
# or a reference to an indirect destination object (loaded lazily)
RawDestination = Union[str, List[Any], PdfRef, None]


@dataclass
class OutlineItem:
    """Existing outline entry as seen by an outline walker."""
    title: str
    dest: RawDestination = None
    color: Optional[Tuple[float, float, float]] = None  # RGB floats in [0, 1]
    bold: bool = False
    italic: bool = False
    children: List["OutlineItem"] = field(default_factory=list)


class PdfObjectStorePort(ABC):
    """Abstract indirect-object allocator for building an outline graph.

    Implementations keep a live reference to every allocated dictionary:
    the writer keeps adding keys (Next, Prev, First, Last, Count) after
    allocation, and the final contents are what must be persisted.

    Implementations: FitzObjectStore
    """

    @abstractmethod
    def allocate(self, obj: Dict[str, Any]) -> PdfRef:
        """Register a dictionary as a new indirect object.

        Args:
            obj: Dictionary keyed by PDF name (without slash)

        Returns:
            Reference to the new object
        """
        pass

    @abstractmethod
    def page_ref(self, page_index: int) -> PdfRef:
        """Get reference to a page object.

        Args:
            page_index: Page number (0-indexed)

        Returns:
            Reference to the page dictionary
        """
        pass

    @abstractmethod
    def page_count(self) -> int:
        """Get total page count."""
        pass

    @abstractmethod
    def set_catalog_outlines(self, ref: PdfRef) -> None:
        """Point the document catalog's /Outlines entry at ``ref``.

        Args:
            ref: Reference to the /Outlines dictionary
        """
        pass


class OutlineWalkerPort(ABC):
    """Abstract reader over a document's existing outline.

    Implementations: FitzOutlineWalker
    """

    @abstractmethod
    def get_outline(self) -> List[OutlineItem]:
        """Get top-level outline items with nested children.

        Returns:
            List of OutlineItem (empty if the document has no outline)
        """
        pass

    @abstractmethod
    def resolve_named_destination(self, name: str) -> Optional[List[Any]]:
        """Look up a named destination.

        Args:
            name: Destination name

        Returns:
            Explicit destination array, or None if the name is unknown
        """
        pass

    @abstractmethod
    def page_index_of(self, ref: Any) -> int:
        """Map a page reference to its index.

        Args:
            ref: Page reference taken from a destination array

        Returns:
            Page index (0-indexed)
        """
        pass

    def resolve_indirect_destination(self, ref: PdfRef) -> List[Any]:
        """Load a destination stored as its own indirect object.

        Called per outline item while reading, so a failure only affects
        that item.

        Args:
            ref: Reference found in the item's /Dest (or GoTo /D) slot

        Returns:
            Explicit destination array

        Raises:
            DestinationResolutionError: The object is missing or not a destination
        """
        raise DestinationResolutionError(f"Indirect destination {ref} is not supported")
