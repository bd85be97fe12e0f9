"""PDF adapters (PyMuPDF)."""
from pdfmarks.adapters.pdf.pymupdf import FitzObjectStore, FitzOutlineWalker, PyMuPDFOutlineAdapter

__all__ = ["FitzObjectStore", "FitzOutlineWalker", "PyMuPDFOutlineAdapter"]
