"""
Transport protocol for the Grakn client.

The client core never touches sockets or gRPC directly. It speaks to the
server through a Transport: a handful of unary calls plus one
bidirectional stream per transaction. The production implementation lives
in _grpc_client; tests provide in-memory implementations.

Invariants:
    - Requests and responses are plain dictionaries (see rpc)
    - Transport failures surface as TransportError
    - Server-reported failures surface as ServerRejectedError
    - A TransactionStream delivers responses in request order

How to change safely:
    - Protocol changes require updating all implementations
    - Keep message shapes in rpc, not in transports
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TransactionStream(Protocol):
    """One bidirectional request/response stream bound to a transaction."""

    async def send(self, request: dict[str, Any]) -> None:
        """Write one request to the stream."""
        ...

    async def receive(self) -> dict[str, Any]:
        """Read the next response from the stream.

        Raises:
            TransportError: If the stream broke or ended unexpectedly
            ServerRejectedError: If the server terminated the stream
        """
        ...

    async def close(self) -> None:
        """Terminate the stream. Safe to call more than once."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Connection to a Grakn server."""

    @property
    def address(self) -> str:
        """Server address, for error reporting."""
        ...

    async def connect(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def session_open(self, request: dict[str, Any]) -> dict[str, Any]:
        ...

    async def session_close(self, request: dict[str, Any]) -> dict[str, Any]:
        ...

    async def keyspace_retrieve(self, request: dict[str, Any]) -> dict[str, Any]:
        ...

    async def keyspace_delete(self, request: dict[str, Any]) -> dict[str, Any]:
        ...

    async def transaction_stream(self) -> TransactionStream:
        """Open a new bidirectional transaction stream."""
        ...
