"""
Grakn client entry point.

This module provides the main client interface:
- GraknClient: Connection to a Grakn server, factory for sessions
- KeyspaceManager: Keyspace listing and deletion

Example:
    >>> async with GraknClient("localhost:48555") as client:
    ...     async with client.session("social") as session:
    ...         async with session.write() as tx:
    ...             await tx.put_entity_type("person")
    ...             await tx.commit()

Invariants:
    - Sessions share the client's connection and nothing else
    - Closing the client closes every session it opened
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import grpc

from . import rpc
from ._grpc_client import GrpcClient
from .config import ClientConfig
from .errors import GraknClientError, TransportError
from .session import Session
from .tracing import TraceContext
from .transport import Transport

logger = logging.getLogger(__name__)


class KeyspaceManager:
    """Keyspace administration using the client's credentials."""

    def __init__(self, client: GraknClient) -> None:
        self._client = client

    async def retrieve(self) -> list[str]:
        """List the names of all keyspaces on the server."""
        await self._client.connect()
        config = self._client.config
        response = await self._client.transport.keyspace_retrieve(
            rpc.keyspace_retrieve(config.username, config.password, self._client.trace_context)
        )
        return list(response.get("names") or [])

    async def delete(self, name: str) -> None:
        """Delete a keyspace and all its data."""
        await self._client.connect()
        config = self._client.config
        await self._client.transport.keyspace_delete(
            rpc.keyspace_delete(name, config.username, config.password, self._client.trace_context)
        )
        logger.info(f"Deleted keyspace {name}")


class GraknClient:
    """Client for connecting to a Grakn server.

    Handles connection management and opens keyspace sessions.

    Example:
        >>> async with GraknClient("localhost:48555") as client:
        ...     session = await client.open_session("social")
    """

    def __init__(
        self,
        address: str | None = None,
        *,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        credentials: grpc.ChannelCredentials | None = None,
        trace_context: TraceContext | None = None,
    ) -> None:
        """Initialize client.

        Args:
            address: Server address (host:port); overrides config.address
            config: Client configuration; defaults to ClientConfig()
            transport: Transport to use instead of gRPC
            credentials: Optional TLS credentials for the gRPC channel
            trace_context: Tracing identifiers attached to every request
        """
        config = config or ClientConfig()
        if address is not None:
            config = dataclasses.replace(config, address=address)

        self.config = config
        self.transport: Transport = transport or GrpcClient(config, credentials=credentials)
        self.trace_context = trace_context
        self._sessions: set[Session] = set()
        self._connected = False

    async def connect(self) -> None:
        """Connect to the server."""
        if self._connected:
            return

        try:
            await self.transport.connect()
        except GraknClientError:
            raise
        except Exception as e:
            raise TransportError(
                f"Failed to connect: {e}",
                address=self.config.address,
            ) from e
        self._connected = True

    async def close(self) -> None:
        """Close all sessions and the connection."""
        if not self._connected:
            return

        for session in list(self._sessions):
            await session.close()
        self._sessions.clear()

        await self.transport.close()
        self._connected = False

    async def __aenter__(self) -> GraknClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def open_session(
        self,
        keyspace: str,
        *,
        trace_context: TraceContext | None = None,
    ) -> Session:
        """Open a session on ``keyspace``. The caller must close it."""
        await self.connect()
        session = await Session.open(
            self.transport,
            keyspace,
            trace_context=trace_context or self.trace_context,
            batch_size=self.config.batch_size,
            on_close=self._sessions.discard,
        )
        self._sessions.add(session)
        return session

    @asynccontextmanager
    async def session(
        self,
        keyspace: str,
        *,
        trace_context: TraceContext | None = None,
    ) -> AsyncIterator[Session]:
        """Open a session that is closed on every exit path."""
        session = await self.open_session(keyspace, trace_context=trace_context)
        try:
            yield session
        finally:
            await session.close()

    def keyspaces(self) -> KeyspaceManager:
        return KeyspaceManager(self)
