"""Secret masking helpers shared by logging and the CLI."""

import re
from typing import Any

SENSITIVE_FIELD_NAMES = frozenset(
    {
        "password",
        "api_key",
        "apikey",
        "secret",
        "token",
        "credential",
        "auth",
        "key",
        "private",
        "bearer",
        "authorization",
    }
)

SENSITIVE_PREFIXES = (
    "sk-",
    "pk-",
    "bearer ",
    "secret_",
    "AIza",
)

_FIELD_PARTS = re.compile(r"[_\-.]")


def mask_api_key(api_key: str, visible_chars: int = 4) -> str:
    """Mask a secret, keeping a short prefix and the last characters.

    Example:
        >>> mask_api_key("sk-1234567890abcdef")
        'sk-...cdef'
    """
    if not api_key:
        return "<empty>"
    if len(api_key) <= visible_chars + 4:
        return "*" * len(api_key)
    if "-" in api_key[:6]:
        prefix = api_key[: api_key.index("-") + 1]
        return f"{prefix}...{api_key[-visible_chars:]}"
    return f"...{api_key[-visible_chars:]}"


def is_sensitive_field(field_name: str) -> bool:
    """True if the field name, or one of its ``_``/``-`` separated parts, names a secret.

    Plural counters such as ``tokens`` or ``max_tokens`` are not secrets.
    """
    if not field_name:
        return False
    lowered = field_name.lower()
    if lowered in SENSITIVE_FIELD_NAMES:
        return True
    return any(part in SENSITIVE_FIELD_NAMES for part in _FIELD_PARTS.split(lowered))


def is_sensitive_value(value: Any) -> bool:
    """True if a string value looks like an API key or bearer token."""
    if not isinstance(value, str):
        return False
    lowered = value.lower()
    return any(lowered.startswith(prefix.lower()) for prefix in SENSITIVE_PREFIXES)


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with secret-looking entries masked, recursively."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if is_sensitive_field(key):
            result[key] = "<REDACTED>"
        elif isinstance(value, str) and is_sensitive_value(value):
            result[key] = mask_api_key(value)
        elif isinstance(value, dict):
            result[key] = sanitize_for_logging(value)
        else:
            result[key] = value
    return result
