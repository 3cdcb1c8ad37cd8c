"""
==============================================================================
Sanitizer Module
==============================================================================

Normalizes one raw decoded string into canonical text.

Rules (applied in order):
------------------------
1. Leading/trailing asterisks (Code 39 start/stop markers) and whitespace
   are stripped together
2. Typographic dashes U+2010..U+2015 are folded to ASCII "-"
3. Internal whitespace runs collapse to a single space

The function is total and idempotent.

==============================================================================
"""

from __future__ import annotations

import re
from typing import Optional, Union


# Marker and whitespace runs at either end of the text
EDGE_PATTERN = re.compile(r"^[\s*]+|[\s*]+$")

# Hyphen, non-breaking hyphen, figure dash, en dash, em dash, horizontal bar
DASH_PATTERN = re.compile(r"[\u2010-\u2015]")

WHITESPACE_PATTERN = re.compile(r"\s+")


def sanitize(raw: Optional[Union[str, bytes]]) -> str:
    """
    Convert raw decoder output into sanitized text.

    Args:
        raw: Decoded text, raw bytes from the decoder, or None

    Returns:
        Sanitized text (empty string when nothing usable was given)

    Example:
        >>> sanitize("*J5-STR-264019-00016-41131-336923*")
        'J5-STR-264019-00016-41131-336923'
    """
    if raw is None:
        return ""

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    elif not isinstance(raw, str):
        raw = str(raw)

    text = EDGE_PATTERN.sub("", raw)
    text = DASH_PATTERN.sub("-", text)
    text = WHITESPACE_PATTERN.sub(" ", text)

    return text.strip()
