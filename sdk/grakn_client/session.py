"""
Keyspace sessions.

A Session is bound to one keyspace and is the factory for transactions.
Transactions opened from the same session are independent: each has its
own stream and lock.

Invariants:
    - A closed session cannot open transactions
    - Closing a session closes every transaction it still has open,
      including one whose open was still in progress
    - Session and transaction lifetimes are scoped with ``async with``

Example:
    >>> async with client.session("social") as session:
    ...     async with session.transaction(TransactionType.READ) as tx:
    ...         person = await tx.get_schema_concept("person")
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from . import rpc
from .errors import ChannelClosedError, UnreachableError
from .rpc import TransactionType
from .tracing import TraceContext
from .transaction import Transaction
from .transport import Transport

logger = logging.getLogger(__name__)


class Session:
    """An open session on one keyspace.

    Safe to share between coroutines as a transaction factory.
    """

    def __init__(
        self,
        transport: Transport,
        keyspace: str,
        session_id: str,
        *,
        trace_context: TraceContext | None = None,
        batch_size: int | None = None,
        on_close: Callable[[Session], None] | None = None,
    ) -> None:
        self._transport = transport
        self._keyspace = keyspace
        self._session_id = session_id
        self._batch_size = batch_size
        self._on_close = on_close
        self._transactions: set[Transaction] = set()
        self._open = True
        self.trace_context = trace_context

    @classmethod
    async def open(
        cls,
        transport: Transport,
        keyspace: str,
        *,
        trace_context: TraceContext | None = None,
        batch_size: int | None = None,
        on_close: Callable[[Session], None] | None = None,
    ) -> Session:
        """Open a session on ``keyspace``."""
        response = await transport.session_open(rpc.session_open(keyspace, trace_context))
        session_id = response.get("session_id")
        if not session_id:
            raise UnreachableError("Session open response has no session_id", response)

        logger.debug(f"Opened session {session_id} on keyspace {keyspace}")
        return cls(
            transport,
            keyspace,
            session_id,
            trace_context=trace_context,
            batch_size=batch_size,
            on_close=on_close,
        )

    @property
    def keyspace(self) -> str:
        return self._keyspace

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def is_open(self) -> bool:
        return self._open

    async def open_transaction(
        self,
        tx_type: TransactionType,
        *,
        trace_context: TraceContext | None = None,
    ) -> Transaction:
        """Open a transaction. The caller must close or commit it.

        Raises:
            ChannelClosedError: If the session is closed
        """
        if not self._open:
            raise ChannelClosedError("Session is closed", channel=self._session_id)

        tx = await Transaction.open(
            self._transport,
            self._session_id,
            tx_type,
            trace_context=trace_context or self.trace_context,
            batch_size=self._batch_size,
            on_close=self._transactions.discard,
        )
        if not self._open:
            # close() ran while the transaction was being opened
            await tx.close()
            raise ChannelClosedError("Session is closed", channel=self._session_id)
        self._transactions.add(tx)
        return tx

    @asynccontextmanager
    async def transaction(
        self,
        tx_type: TransactionType,
        *,
        trace_context: TraceContext | None = None,
    ) -> AsyncIterator[Transaction]:
        """Open a transaction that is closed on every exit path."""
        tx = await self.open_transaction(tx_type, trace_context=trace_context)
        try:
            yield tx
        finally:
            await tx.close()

    def read(self, *, trace_context: TraceContext | None = None):
        """Scoped READ transaction."""
        return self.transaction(TransactionType.READ, trace_context=trace_context)

    def write(self, *, trace_context: TraceContext | None = None):
        """Scoped WRITE transaction."""
        return self.transaction(TransactionType.WRITE, trace_context=trace_context)

    async def close(self) -> None:
        """Close open transactions, then the session itself."""
        if not self._open:
            return
        self._open = False

        try:
            for tx in list(self._transactions):
                await tx.close()

            await self._transport.session_close(
                rpc.session_close(self._session_id, self.trace_context)
            )
        finally:
            if self._on_close is not None:
                self._on_close(self)
        logger.debug(f"Closed session {self._session_id}")

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
