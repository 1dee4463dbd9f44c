import re
import secrets
from typing import Any, Mapping, Optional

BEARER_PATTERN = re.compile(r"Bearer\s+(.*)$", re.IGNORECASE)


def extract_api_key(
    query_params: Mapping[str, str],
    body: Optional[Mapping[str, Any]] = None,
    authorization: Optional[str] = None,
) -> str:
    """Find the caller's key: query string, then body, a bearer header wins."""
    provided = query_params.get("key") or ""
    if not provided and body:
        value = body.get("key")
        provided = value if isinstance(value, str) else ""

    if authorization:
        match = BEARER_PATTERN.search(authorization)
        if match:
            provided = match.group(1).strip()

    return provided


def is_authorized(api_key: Optional[str], provided_key: str) -> bool:
    """Requests are open unless an operator key is configured."""
    if not api_key:
        return True
    if not provided_key:
        return False
    return secrets.compare_digest(provided_key.encode(), api_key.encode())
