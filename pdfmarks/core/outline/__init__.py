"""Bookmark tree conversions: CSV, JSON and the PDF outline object graph."""

from pdfmarks.core.outline.csv_codec import decode_csv, encode_csv
from pdfmarks.core.outline.json_codec import decode_json, encode_json
from pdfmarks.core.outline.reader import OutlineReader, read_outline
from pdfmarks.core.outline.text import clean_title
from pdfmarks.core.outline.writer import OutlineWriter, write_outline

__all__ = [
    "OutlineReader",
    "OutlineWriter",
    "clean_title",
    "decode_csv",
    "decode_json",
    "encode_csv",
    "encode_json",
    "read_outline",
    "write_outline",
]
