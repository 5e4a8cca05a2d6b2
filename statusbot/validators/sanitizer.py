"""
Input sanitisation for user-supplied text that ends up in chat messages.

sanitize_string() escapes HTML special characters and neutralises chat
markdown (bold/italic, code, strikethrough, spoilers) so user input is
rendered literally. The validate_* helpers return the cleaned value, or
None when the input is not acceptable.
"""

import re
from typing import Any
from urllib.parse import urlsplit

# Order matters: "&" first so later entities are not double-escaped
_HTML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#039;"),
)
_MARKDOWN_RE = re.compile(r"([*`_~|])")

_DISCORD_ID_RE = re.compile(r"^\d{17,20}$")
_CHANNEL_NAME_RE = re.compile(r"^[a-z0-9_-]+$")
CHANNEL_NAME_MAX_LENGTH = 100


def sanitize_string(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    for char, entity in _HTML_ESCAPES:
        text = text.replace(char, entity)
    return _MARKDOWN_RE.sub(r"\\\1", text)


def sanitize_object(value: Any) -> Any:
    """Recursively sanitise every string in dicts, lists and tuples; other values pass through."""
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, dict):
        return {key: sanitize_object(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_object(item) for item in value)
    return value


def validate_discord_id(value: Any) -> str | None:
    """Snowflake IDs are 17-20 digit strings."""
    if not value:
        return None
    clean = str(value).strip()
    return clean if _DISCORD_ID_RE.match(clean) else None


def validate_channel_name(value: Any) -> str | None:
    if not value:
        return None
    clean = str(value).strip().lower()
    if 0 < len(clean) <= CHANNEL_NAME_MAX_LENGTH and _CHANNEL_NAME_RE.match(clean):
        return clean
    return None


def validate_url(value: Any) -> str | None:
    """Accept absolute http(s) URLs only."""
    if not value:
        return None
    try:
        parts = urlsplit(str(value).strip())
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return parts.geturl()
