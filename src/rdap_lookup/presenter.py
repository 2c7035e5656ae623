"""
Presenter: renders resolved RDAP documents.

Formats: compact JSON, pretty JSON, newline-delimited JSON (one compact
document per line) and a short field summary. Display options come from a
DisplayConfig passed at construction; nothing is read from global state.

The summary probes optional keys defensively: documents vary by object
class and by registry extensions.
"""

import json
import sys
from typing import Any, Optional, TextIO

from rich.console import Console
from rich.text import Text

from .config import DisplayConfig
from .enums import OutputFormat
from .exceptions import RdapLookupError


MISSING = "-"
LABEL_STYLE = "bold blue"
FAILURE_STYLE = "bold red"


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return MISSING
    if isinstance(value, (int, float)):
        return str(value)
    return MISSING


def _str_of(obj: dict, key: str) -> str:
    value = obj.get(key)
    return value if isinstance(value, str) else MISSING


def _statuses(obj: dict) -> Optional[str]:
    statuses = obj.get("status")
    if not isinstance(statuses, list):
        return None
    names = [s for s in statuses if isinstance(s, str)]
    return ", ".join(names) if names else None


def _entity_name(entity: dict) -> Optional[str]:
    """Formatted name from the entity's jCard, else its handle."""
    vcard = entity.get("vcardArray")
    if isinstance(vcard, list) and len(vcard) == 2 and isinstance(vcard[1], list):
        for prop in vcard[1]:
            if (
                isinstance(prop, list)
                and len(prop) > 3
                and prop[0] == "fn"
                and isinstance(prop[3], str)
            ):
                return prop[3]
    handle = entity.get("handle")
    return handle if isinstance(handle, str) else None


def find_entity_role(obj: dict, role: str) -> Optional[str]:
    """Name of the first entity carrying ``role``."""
    entities = obj.get("entities")
    if not isinstance(entities, list):
        return None
    for entity in entities:
        if not isinstance(entity, dict):
            continue
        roles = entity.get("roles")
        if isinstance(roles, list) and role in roles:
            name = _entity_name(entity)
            if name is not None:
                return name
    return None


def roles_summary(obj: dict) -> Optional[str]:
    """Sorted, de-duplicated roles across all top-level entities."""
    entities = obj.get("entities")
    if not isinstance(entities, list):
        return None
    roles = set()
    for entity in entities:
        if isinstance(entity, dict) and isinstance(entity.get("roles"), list):
            roles.update(r for r in entity["roles"] if isinstance(r, str))
    return ", ".join(sorted(roles)) if roles else None


def _cidr(obj: dict) -> str:
    cidrs = obj.get("cidr0_cidrs")
    if cidrs is None:
        return MISSING
    first = cidrs[0] if isinstance(cidrs, list) and cidrs else {}
    if not isinstance(first, dict):
        first = {}
    prefix = first.get("v4prefix", first.get("v6prefix"))
    return f"{_as_str(prefix)}/{_as_str(first.get('length'))}"


def summarize(document: Any) -> list[tuple[str, str]]:
    """
    Extract the summary fields shown by the table view.

    Args:
        document: Resolved RDAP document (non-objects summarize as empty)

    Returns:
        Ordered (label, value) pairs
    """
    obj = document if isinstance(document, dict) else {}
    kind = _str_of(obj, "objectClassName")

    rows = [
        ("Type", kind),
        ("Handle", _str_of(obj, "handle")),
        ("Name", _str_of(obj, "name")),
    ]

    def add(label: str, value: Optional[str]) -> None:
        if value is not None:
            rows.append((label, value))

    if kind == "domain":
        add("Registrar", find_entity_role(obj, "registrar"))
        add("Status", _statuses(obj))
        port43 = obj.get("port43")
        add("WHOIS", port43 if isinstance(port43, str) else None)
    elif kind == "ip network":
        rows.append(("Country", _str_of(obj, "country")))
        rows.append(("Start", _str_of(obj, "startAddress")))
        rows.append(("End", _str_of(obj, "endAddress")))
        rows.append(("CIDR", _cidr(obj)))
        add("Status", _statuses(obj))
        add("Abuse", find_entity_role(obj, "abuse"))
        add("NOC", find_entity_role(obj, "noc"))
    elif kind == "autnum":
        start = obj.get("startAutnum")
        end = obj.get("endAutnum")
        if isinstance(start, int) and not isinstance(start, bool) and start != 0:
            rows.append(("Range", f"{start}-{_as_str(end)}"))
        add("Status", _statuses(obj))
        add("Registrant", find_entity_role(obj, "registrant"))
        add("Abuse", find_entity_role(obj, "abuse"))

    add("Roles", roles_summary(obj))
    return rows


class Presenter:
    """
    Writes documents and failures in the configured output format.
    """

    def __init__(
        self,
        display: DisplayConfig,
        stream: Optional[TextIO] = None,
        error_stream: Optional[TextIO] = None,
    ) -> None:
        """
        Initialize the presenter.

        Args:
            display: Output format and color settings
            stream: Document output (defaults to sys.stdout)
            error_stream: Failure output (defaults to sys.stderr)
        """
        self._display = display
        self._stream = stream or sys.stdout
        self._error_stream = error_stream or sys.stderr
        self._console = self._make_console(self._stream)
        self._error_console = self._make_console(self._error_stream)

    def _make_console(self, stream: TextIO) -> Console:
        if self._display.color:
            return Console(file=stream, highlight=False, soft_wrap=True)
        return Console(file=stream, color_system=None, highlight=False, soft_wrap=True)

    @property
    def display(self) -> DisplayConfig:
        return self._display

    def render(self, document: Any) -> str:
        """Render a document as plain text in the configured format."""
        output_format = self._display.output_format
        if output_format is OutputFormat.PRETTY:
            return json.dumps(document, indent=2, ensure_ascii=False)
        if output_format is OutputFormat.TABLE:
            return "\n".join(f"{label}: {value}" for label, value in summarize(document))
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)

    def show(self, document: Any) -> None:
        """Write one document to the output stream."""
        if self._display.output_format is OutputFormat.TABLE:
            for label, value in summarize(document):
                self._console.print(Text.assemble((f"{label}:", LABEL_STYLE), " ", value))
            return
        self._stream.write(self.render(document) + "\n")
        self._stream.flush()

    def show_failure(self, query: str, error: RdapLookupError, label: str = "Failed") -> None:
        """Report one failed query on the error stream."""
        self._error_console.print(
            Text.assemble((label, FAILURE_STYLE), f" {query}: {error.message}")
        )

    def show_failure_record(self, query: str, error: RdapLookupError) -> None:
        """Failure as a compact JSON line on the output stream (NDJSON mode)."""
        record = {"query": query, "error": error.to_dict()}
        self._stream.write(json.dumps(record, separators=(",", ":"), ensure_ascii=False) + "\n")
        self._stream.flush()
