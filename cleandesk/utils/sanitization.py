import html
import re
from typing import Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters to prevent stored XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)


def clean_text(value: Optional[str], max_length: int = 5000) -> Optional[str]:
    """
    Strip, drop control characters, escape HTML and truncate free text.
    Empty strings become None.
    """
    if value is None:
        return None

    value = CONTROL_CHARS.sub("", str(value)).strip()
    if not value:
        return None

    return sanitize_string(value[:max_length])
