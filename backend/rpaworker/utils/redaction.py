"""Masking of step configs before they reach a log line.

Login steps carry credentials as plain config fields, and screenshot or
file payloads can be megabytes of base64.  ``redact_sensitive_data`` returns
a copy with secret-looking keys masked and oversized strings elided.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

REDACTION_PLACEHOLDER = "***REDACTED***"

# Key fragments, matched anywhere in the key, case-insensitive
SENSITIVE_KEY_FRAGMENTS = (
    "password",
    "token",
    r"api[_-]?key",
    "secret",
    "credential",
    "authorization",
    "cookie",
    r"private[_-]?key",
)

_SENSITIVE_KEY_RE = re.compile("|".join(SENSITIVE_KEY_FRAGMENTS), re.IGNORECASE)

MAX_LOGGED_STRING = 512
_ELIDED_PREFIX = 64


def _is_sensitive_key(key: str, patterns: Iterable[re.Pattern] | None = None) -> bool:
    if patterns is None:
        return _SENSITIVE_KEY_RE.search(key) is not None
    return any(p.search(key) for p in patterns)


def _elide(value: str) -> str:
    return f"{value[:_ELIDED_PREFIX]}…<{len(value)} chars>"


def redact_sensitive_data(
    data: Any,
    max_depth: int = 10,
    patterns: list[re.Pattern] | None = None,
) -> Any:
    """Return a redacted copy of *data*; the input is never mutated.

    *patterns* replaces the built-in key fragments.  Containers nested deeper
    than *max_depth* are returned as-is.
    """
    if max_depth <= 0:
        return data
    depth = max_depth - 1

    if isinstance(data, dict):
        return {
            key: REDACTION_PLACEHOLDER
            if _is_sensitive_key(str(key), patterns)
            else redact_sensitive_data(value, depth, patterns)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        items = [redact_sensitive_data(item, depth, patterns) for item in data]
        return items if isinstance(data, list) else tuple(items)
    if isinstance(data, str) and len(data) > MAX_LOGGED_STRING:
        return _elide(data)
    return data
