"""
Query classification.

Turns a raw query string into an Identifier (domain, IP address or AS
number). Pure function, no I/O.

Rules, checked in order on the trimmed query, first match wins:
1. Leading letter in ``AaSs``: strip every leading ``AaSs`` character and
   treat the rest as an AS number ("AS13335", "as13335", "Ass13335").
2. Valid IPv4/IPv6 literal: IP address, text unchanged.
3. Contains ".": domain.
4. Unsigned 32-bit decimal integer: AS number.
5. Anything else is a ClassificationError.
"""

import ipaddress
import re

from .enums import ClassificationErrorCode, IdentifierKind
from .exceptions import ClassificationError
from .models import Identifier


AS_PREFIX_CHARS = "AaSs"
MAX_ASN = 2**32 - 1

_DECIMAL_PATTERN = re.compile(r"^[0-9]+$")


def _is_ip_literal(text: str) -> bool:
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def _is_u32(text: str) -> bool:
    return bool(_DECIMAL_PATTERN.match(text)) and int(text) <= MAX_ASN


def classify(query: str) -> Identifier:
    """
    Classify a query string.

    Args:
        query: Raw user-supplied query

    Returns:
        Identifier with kind and normalized form

    Raises:
        ClassificationError: If the query matches no known identifier shape
    """
    text = query.strip()

    if not text:
        raise ClassificationError(
            code=ClassificationErrorCode.EMPTY_QUERY.value,
            message="Query is empty",
            details={"query": query},
        )

    if text[0] in AS_PREFIX_CHARS:
        return Identifier(
            kind=IdentifierKind.AUTONOMOUS_SYSTEM_NUMBER,
            normalized=text.lstrip(AS_PREFIX_CHARS),
            raw=query,
        )

    if _is_ip_literal(text):
        return Identifier(kind=IdentifierKind.IP_ADDRESS, normalized=text, raw=query)

    if "." in text:
        return Identifier(kind=IdentifierKind.DOMAIN, normalized=text, raw=query)

    if _is_u32(text):
        return Identifier(
            kind=IdentifierKind.AUTONOMOUS_SYSTEM_NUMBER,
            normalized=text,
            raw=query,
        )

    raise ClassificationError(
        code=ClassificationErrorCode.UNCLASSIFIABLE.value,
        message="cannot classify query (expect domain, IP, or ASN)",
        details={"query": query},
    )
