"""Input validation helpers for tenant setup and list filters."""
from __future__ import annotations
import re

from urllib3.util import parse_url
from urllib3.exceptions import LocationParseError

from bi_admin.core.api.exceptions import InvalidFilterError

_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

_VALUE = r'(?:"(?:[^"\\]|\\.)*"|true|false|null|-?\d+(?:\.\d+)?)'
_ATTR = r"[A-Za-z_][A-Za-z0-9_.]*"
_CLAUSE = rf"(?:{_ATTR}\s+(?:eq|ne|co|sw|ew|gt|ge|lt|le)\s+{_VALUE}|{_ATTR}\s+pr)"
_FILTER_RE = re.compile(rf"^{_CLAUSE}(?:\s+(?:and|or)\s+{_CLAUSE})*$", re.IGNORECASE)


def normalize_id(raw: str, field: str) -> str:
    """Trim and validate a tenant, realm or application id.

    Args:
        raw: Raw id input
        field: Field name for error messages (e.g., "Tenant id")

    Returns:
        Trimmed id

    Raises:
        ValueError: If the id is empty or contains characters unsafe in a URL path
    """
    value = (raw or "").strip()
    if not value:
        raise ValueError(f"{field} is required")
    if len(value) > 128:
        raise ValueError(f"{field} exceeds maximum length")
    if not _ID_RE.match(value):
        raise ValueError(f"{field} contains invalid characters")
    return value


def validate_base_url(url: str, field: str) -> str:
    """Validate an absolute http(s) base URL and strip trailing slashes.

    Raises:
        ValueError: If the URL is not absolute http(s)
    """
    value = (url or "").strip()
    if not value:
        raise ValueError(f"{field} is required")
    try:
        parsed = parse_url(value)
    except LocationParseError:
        raise ValueError(f"{field} is not a valid URL") from None
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError(f"{field} must be an absolute http(s) URL")
    if parsed.query or parsed.fragment:
        raise ValueError(f"{field} must not contain a query or fragment")
    return value.rstrip("/")


def validate_filter(expression: str) -> str:
    """Validate a list filter such as ``traits.username eq "alice"``.

    Clauses take the form ``attr op value`` or ``attr pr`` and may be joined
    with ``and``/``or``. Values are double-quoted strings, numbers, booleans
    or null.

    Raises:
        InvalidFilterError: If the expression does not follow that grammar
    """
    value = (expression or "").strip()
    if not value:
        raise InvalidFilterError(expression, "empty filter")
    if not _FILTER_RE.match(value):
        raise InvalidFilterError(expression, "expected 'attribute operator value' clauses")
    return value
