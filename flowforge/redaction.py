from __future__ import annotations

import re
from typing import Any


EMAIL_MARKER = "[email redacted]"
PHONE_MARKER = "[phone redacted]"

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

# (555) 123-4567 must run before the bare form, otherwise "555" is left behind.
_PHONE_PAREN_RE = re.compile(r"(?<!\w)\(\d{3}\)\s*\d{3}[-.]?\d{4}\b")
_PHONE_PLAIN_RE = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")


def mask_text(text: Any) -> Any:
    if not isinstance(text, str) or not text:
        return text
    value = _EMAIL_RE.sub(EMAIL_MARKER, text)
    value = _PHONE_PAREN_RE.sub(PHONE_MARKER, value)
    value = _PHONE_PLAIN_RE.sub(PHONE_MARKER, value)
    return value


def mask_deep(obj: Any) -> Any:
    """Return a copy of ``obj`` with every string leaf passed through mask_text.

    Mapping keys are kept as-is and in order; lists stay lists and tuples
    stay tuples. The input is never modified.
    """
    if obj is None:
        return None
    if isinstance(obj, str):
        return mask_text(obj)
    if isinstance(obj, (int, float, bool)):
        return obj
    if isinstance(obj, dict):
        return {key: mask_deep(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [mask_deep(item) for item in obj]
    if isinstance(obj, tuple):
        return tuple(mask_deep(item) for item in obj)
    return obj
