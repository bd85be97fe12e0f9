"""
PDF object syntax helpers for the PyMuPDF adapter.

PyMuPDF reads and writes raw object source; these helpers turn the
writer's Python values into that source and tokenize destination arrays
coming back out.
"""
import re
from typing import Any, List, Optional, Tuple

from pdfmarks.core.ports.pdf import PdfName, PdfRef

_NAME_DELIMITERS = set("#()<>[]{}/%")

_TOKEN = re.compile(
    r"(?P<ref>(\d+)\s+(\d+)\s+R)"
    r"|/(?P<name>[^\s/\[\]()<>{}%]*)"
    r"|(?P<num>[+-]?(?:\d+\.?\d*|\.\d+))"
    r"|(?P<kw>null|true|false)"
)


def format_number(value: float) -> str:
    """Plain decimal notation; PDF has no exponent syntax."""
    if isinstance(value, int):
        return str(value)
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.6f}".rstrip("0").rstrip(".")


def format_name(name: str) -> str:
    escaped = []
    for ch in name:
        code = ord(ch)
        if code < 0x21 or code > 0x7E or ch in _NAME_DELIMITERS:
            escaped.extend(f"#{byte:02X}" for byte in ch.encode("utf-8"))
        else:
            escaped.append(ch)
    return "/" + "".join(escaped)


def format_text_string(text: str) -> str:
    """UTF-16BE hex string with byte order mark."""
    return "<FEFF" + text.encode("utf-16-be").hex().upper() + ">"


def serialize(value: Any) -> str:
    """
    Serialize a Python value as PDF object source.

    Args:
        value: None, bool, int/float, PdfRef, PdfName, str, list/tuple or dict
            keyed by PDF name (without slash)

    Returns:
        PDF object source text
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, PdfRef):
        return str(value)
    if isinstance(value, PdfName):
        return format_name(value)
    if isinstance(value, str):
        return format_text_string(value)
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(serialize(item) for item in value) + "]"
    if isinstance(value, dict):
        body = "".join(f"{format_name(key)} {serialize(item)}" for key, item in value.items())
        return "<<" + body + ">>"
    raise TypeError(f"Cannot serialize {type(value).__name__} as a PDF object")


def parse_xref(value: str) -> Optional[int]:
    """``"12 0 R"`` -> 12."""
    match = re.match(r"\s*(\d+)\s+\d+\s+R", value or "")
    return int(match.group(1)) if match else None


def parse_array(text: str) -> List[Any]:
    """
    Tokenize a flat PDF array such as a destination.

    Args:
        text: Array source, e.g. "[3 0 R /XYZ 0 792 0]"

    Returns:
        List of PdfRef, PdfName, int/float, bool or None items
    """
    items: List[Any] = []
    for match in _TOKEN.finditer(text or ""):
        if match.group("ref"):
            items.append(PdfRef(int(match.group(2)), int(match.group(3))))
        elif match.group("name") is not None:
            items.append(PdfName(match.group("name")))
        elif match.group("num"):
            raw = match.group("num")
            items.append(float(raw) if "." in raw else int(raw))
        else:
            keyword = match.group("kw")
            items.append(None if keyword == "null" else keyword == "true")
    return items


def parse_rgb(text: str) -> Optional[Tuple[float, float, float]]:
    """Parse a /C array into an RGB float triple."""
    numbers = [item for item in parse_array(text) if isinstance(item, (int, float)) and not isinstance(item, bool)]
    if len(numbers) != 3:
        return None
    return float(numbers[0]), float(numbers[1]), float(numbers[2])
