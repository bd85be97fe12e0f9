"""Title sanitization shared by every import path."""
import re

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def clean_title(title) -> str:
    """Strip C0/C1 control characters (0x00-0x1F, 0x7F-0x9F) from a title."""
    if title is None:
        return ""
    return _CONTROL_CHARS.sub("", str(title))
