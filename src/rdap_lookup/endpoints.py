"""Endpoint resolution: Identifier -> RDAP request URL."""

from .config import DEFAULT_BASE_URL
from .enums import IdentifierKind
from .models import Identifier


# Path segment per identifier kind, appended to the service base URL
PATH_TEMPLATES = {
    IdentifierKind.DOMAIN: "/domain/{normalized}",
    IdentifierKind.IP_ADDRESS: "/ip/{normalized}",
    IdentifierKind.AUTONOMOUS_SYSTEM_NUMBER: "/autnum/{normalized}",
}


def resolve(identifier: Identifier, base_url: str = DEFAULT_BASE_URL) -> str:
    """
    Build the request URL for an identifier.

    The URL doubles as the cache key, so identical identifiers always
    resolve to the identical string.

    Args:
        identifier: A classified identifier
        base_url: RDAP service root (trailing slashes are ignored)

    Returns:
        Fully-qualified request URL
    """
    template = PATH_TEMPLATES[identifier.kind]
    return base_url.rstrip("/") + template.format(normalized=identifier.normalized)
