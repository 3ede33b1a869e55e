"""
Input cleanup for free-text names and values
"""

import re
from typing import Optional

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_text(value: Optional[str], max_length: int) -> str:
    """Strip HTML tags and control characters, collapse the ends, cap the length"""
    if not value:
        return ""
    cleaned = _TAG_RE.sub("", value)
    cleaned = _CONTROL_RE.sub("", cleaned)
    return cleaned.strip()[:max_length]


def sanitize_answer(value: Optional[str], max_length: int) -> str:
    """Like sanitize_text but keeps inner text untouched for exact matching

    Guess/answer comparison is exact apart from case, so only tags and control
    characters are removed here and surrounding whitespace is preserved.
    """
    if value is None:
        return ""
    cleaned = _TAG_RE.sub("", value)
    cleaned = _CONTROL_RE.sub("", cleaned)
    return cleaned[:max_length]
