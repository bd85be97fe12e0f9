"""Core domain exceptions.

All exceptions raised by core logic inherit from CoreError.
Adapters catch provider-specific errors and re-raise as these.
"""


class CoreError(Exception):
    """Base for all core domain errors."""
    pass


class MalformedInputError(CoreError):
    """CSV row or JSON document could not be parsed."""
    pass


class DestinationResolutionError(CoreError):
    """Outline item destination could not be resolved to a page."""
    pass


class ObjectStoreError(CoreError):
    """PDF object store rejected an allocation or registration."""
    pass


class PDFError(CoreError):
    """PDF operation failed."""
    pass


class BookmarkNotFoundError(CoreError):
    """No bookmark with the requested id exists in the tree."""

    def __init__(self, node_id):
        super().__init__(f"Bookmark not found: {node_id}")
        self.node_id = node_id


class SessionNotFoundError(CoreError):
    """No editing session with the requested id exists."""
    pass


class ValidationError(CoreError):
    """Data validation failed."""
    pass
