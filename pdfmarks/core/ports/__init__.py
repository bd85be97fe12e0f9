"""Abstract interfaces for external dependencies."""
from pdfmarks.core.ports.pdf import (
    OutlineItem,
    OutlineWalkerPort,
    PdfName,
    PdfObjectStorePort,
    PdfRef,
)

__all__ = [
    "OutlineItem",
    "OutlineWalkerPort",
    "PdfName",
    "PdfObjectStorePort",
    "PdfRef",
]
