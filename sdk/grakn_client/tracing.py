"""
Tracing metadata for outgoing requests.

The client does not talk to a tracing backend. Callers that run inside a
trace pass a TraceContext down to the client, session or transaction, and
every request built on their behalf carries the two trace identifiers in
its metadata map.

Invariants:
    - No context, or an incomplete one, yields an empty map (never an error)
    - Identifiers are never sent as empty strings
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

TRACE_PARENT_ID = "traceParentId"
TRACE_ROOT_ID = "traceRootId"


@dataclass(frozen=True)
class TraceContext:
    """Identifiers of the active trace.

    Attributes:
        trace_id: Identifier of the current span (sent as the parent id)
        root_id: Identifier of the root span of the trace
    """

    trace_id: Any = None
    root_id: Any = None

    @property
    def complete(self) -> bool:
        """Whether both identifiers are present and non-empty."""
        return _present(self.trace_id) and _present(self.root_id)


def _present(identifier: Any) -> bool:
    return identifier is not None and str(identifier) != ""


def tracing_metadata(context: TraceContext | None) -> dict[str, str]:
    """Build the request metadata map for a trace context."""
    if context is None or not context.complete:
        return {}
    return {
        TRACE_PARENT_ID: str(context.trace_id),
        TRACE_ROOT_ID: str(context.root_id),
    }
