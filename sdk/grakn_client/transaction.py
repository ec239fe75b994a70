"""
Transaction channel for the Grakn client.

A Transaction owns one bidirectional stream to the server and exchanges
request/response pairs over it strictly in order.

States:
    OPEN -> AWAITING_RESPONSE -> OPEN         (every exchange)
    OPEN -> COMMITTING -> CLOSED              (commit, WRITE only)
    any  -> CLOSED                            (close, server or transport failure)

Invariants:
    - At most one request is in flight; concurrent callers queue on a lock
    - Responses are matched to requests by send order
    - commit() on a READ transaction fails before any network call
    - A server rejection or connection loss closes the transaction; the
      call that hit it raises ServerRejectedError or TransportError
    - Once CLOSED every later call raises ChannelClosedError, chained to
      the failure that closed the transaction, if any
    - close() unblocks a call waiting for its response
    - Nothing is retried

Example:
    >>> async with session.transaction(TransactionType.WRITE) as tx:
    ...     await tx.put_entity_type("person")
    ...     await tx.commit()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from . import rpc
from .answer import answer_from_wire
from .concept import (
    AttributeType,
    Concept,
    EntityType,
    RelationType,
    Role,
    Rule,
    SchemaConcept,
)
from .errors import (
    ChannelClosedError,
    GraknClientError,
    ServerRejectedError,
    TransportError,
    UsageError,
)
from .iterator import QueryIterator, QueryOptions
from .rpc import TransactionType
from .tracing import TraceContext
from .transport import TransactionStream, Transport
from .values import ValueType

logger = logging.getLogger(__name__)


class TransactionState(Enum):
    OPEN = "open"
    AWAITING_RESPONSE = "awaiting_response"
    COMMITTING = "committing"
    CLOSED = "closed"


class Transaction:
    """An open transaction on one keyspace session.

    Not safe for unsynchronised use from several threads; concurrent
    coroutines on the same event loop are serialised internally.
    """

    def __init__(
        self,
        stream: TransactionStream,
        session_id: str,
        tx_type: TransactionType,
        *,
        trace_context: TraceContext | None = None,
        batch_size: int | None = None,
        on_close: Callable[[Transaction], None] | None = None,
    ) -> None:
        """Initialize a transaction over an already opened stream.

        Use Transaction.open() or Session.open_transaction() instead of
        calling this directly.
        """
        self._stream = stream
        self._session_id = session_id
        self._type = tx_type
        self._batch_size = batch_size
        self._on_close = on_close
        self._state = TransactionState.OPEN
        self._failure: GraknClientError | None = None
        self._lock = asyncio.Lock()
        self._closed = asyncio.Event()
        self._closing: asyncio.Future | None = None
        self.trace_context = trace_context

    @classmethod
    async def open(
        cls,
        transport: Transport,
        session_id: str,
        tx_type: TransactionType,
        *,
        trace_context: TraceContext | None = None,
        batch_size: int | None = None,
        on_close: Callable[[Transaction], None] | None = None,
    ) -> Transaction:
        """Open a transaction stream and send the open request."""
        stream = await transport.transaction_stream()
        tx = cls(
            stream,
            session_id,
            tx_type,
            trace_context=trace_context,
            batch_size=batch_size,
            on_close=on_close,
        )
        try:
            response = await tx.exchange(rpc.transaction_open(session_id, tx_type, trace_context))
            rpc.response_body(response, "open_res")
        except GraknClientError:
            await tx.close()
            raise
        logger.debug(f"Opened {tx_type.value} transaction on session {session_id}")
        return tx

    @property
    def type(self) -> TransactionType:
        return self._type

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is not TransactionState.CLOSED

    @property
    def failure(self) -> GraknClientError | None:
        """Failure that closed the transaction, if it did not close cleanly."""
        return self._failure

    async def __aenter__(self) -> Transaction:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # ----------------------------------------------------------- channel

    def _ensure_open(self) -> None:
        if self._state is TransactionState.CLOSED:
            raise ChannelClosedError(
                "Transaction is closed", channel=self._session_id
            ) from self._failure

    async def exchange(self, request: dict[str, Any]) -> dict[str, Any]:
        """Send one request and wait for its response.

        Callers are queued so that only one request is in flight.

        Raises:
            ChannelClosedError: If the transaction is or becomes closed
            ServerRejectedError: If the server rejected the request
            TransportError: If the connection failed

        Either failure closes the transaction; calls made after it raise
        ChannelClosedError instead.
        """
        async with self._lock:
            return await self._exchange_locked(request, TransactionState.AWAITING_RESPONSE)

    async def _exchange_locked(
        self,
        request: dict[str, Any],
        busy_state: TransactionState,
    ) -> dict[str, Any]:
        self._ensure_open()
        self._state = busy_state
        try:
            await self._stream.send(request)
            response = await self._await_response()
            if "error" in response:
                raise ServerRejectedError(str(response["error"]))
        except (ServerRejectedError, TransportError) as e:
            logger.warning(f"Transaction on session {self._session_id} failed: {e.message}")
            await self._terminate(e)
            raise
        except asyncio.CancelledError:
            # The response to this request may still arrive; the stream
            # can no longer be kept in step.
            self._mark_closed(None)
            self._closing = asyncio.ensure_future(self._stream.close())
            self._closing.add_done_callback(self._stream_closed)
            raise

        if self._state is busy_state:
            self._state = TransactionState.OPEN
        return response

    async def _await_response(self) -> dict[str, Any]:
        receive = asyncio.ensure_future(self._stream.receive())
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {receive, closed}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            closed.cancel()
            if not receive.done():
                receive.cancel()

        if receive in done and not self._closed.is_set():
            return receive.result()
        if receive.done() and not receive.cancelled():
            # Consume the teardown error of a stream closed under us
            receive.exception()
        raise ChannelClosedError(
            "Transaction closed while awaiting a response", channel=self._session_id
        ) from self._failure

    def _stream_closed(self, closing: asyncio.Future) -> None:
        if not closing.cancelled() and closing.exception() is not None:
            logger.warning(
                f"Closing stream of session {self._session_id} failed: {closing.exception()}"
            )

    def _mark_closed(self, failure: GraknClientError | None) -> bool:
        if self._state is TransactionState.CLOSED:
            return False
        self._state = TransactionState.CLOSED
        self._failure = failure
        self._closed.set()
        if self._on_close is not None:
            self._on_close(self)
        return True

    async def _terminate(self, failure: GraknClientError | None) -> None:
        if self._mark_closed(failure):
            await self._stream.close()

    async def commit(self) -> None:
        """Persist all changes and close the transaction.

        Raises:
            UsageError: If this is a READ transaction (nothing is sent)
            ServerRejectedError: If the server refused the commit; the
                transaction is closed and the failure kept on ``failure``
        """
        if self._type is not TransactionType.WRITE:
            raise UsageError("Only WRITE transactions can be committed")

        async with self._lock:
            try:
                response = await self._exchange_locked(
                    rpc.transaction_commit(self.trace_context),
                    TransactionState.COMMITTING,
                )
                rpc.response_body(response, "commit_res")
            finally:
                await self._terminate(None)
        logger.debug(f"Committed transaction on session {self._session_id}")

    async def close(self) -> None:
        """Close the transaction, discarding uncommitted changes.

        Any call waiting on this transaction fails with ChannelClosedError.
        Closing an already closed transaction does nothing.
        """
        if self._state is TransactionState.CLOSED:
            return
        await self._terminate(None)
        logger.debug(f"Closed transaction on session {self._session_id}")

    # ------------------------------------------------------------ queries

    def _options(self, options: QueryOptions | None) -> QueryOptions | None:
        if options is None:
            if self._batch_size is None:
                return None
            return QueryOptions(batch_size=self._batch_size)
        if options.batch_size is None and self._batch_size is not None:
            return QueryOptions(options.infer, options.explain, self._batch_size)
        return options

    def query(
        self,
        query: str,
        *,
        infer: bool | None = None,
        explain: bool | None = None,
        batch_size: int | None = None,
    ) -> QueryIterator:
        """Run a query and iterate over its answers lazily.

        Args:
            query: Query string, passed to the server unparsed
            infer: Enable or disable rule inference
            explain: Request explanations for answers
            batch_size: Maximum answers per round trip

        Returns:
            QueryIterator of answers (see answer module)
        """
        options = self._options(QueryOptions(infer, explain, batch_size))
        return QueryIterator(
            self,
            rpc.query_iterate(query, options, self.trace_context),
            answer_from_wire,
            options,
            item_kind="answer",
        )

    async def get_schema_concept(self, label: str) -> SchemaConcept | None:
        """Look up a type, role or rule by label."""
        response = await self.exchange(rpc.get_schema_concept(label, self.trace_context))
        body = rpc.response_body(response, "get_schema_concept_res")
        return rpc.decode_concept(body.get("schema_concept"), self)

    async def get_concept(self, concept_id: str) -> Concept | None:
        """Look up any concept by id."""
        response = await self.exchange(rpc.get_concept(concept_id, self.trace_context))
        body = rpc.response_body(response, "get_concept_res")
        return rpc.decode_concept(body.get("concept"), self)

    def get_attributes(self, value: Any, value_type: ValueType | None = None) -> QueryIterator:
        """Iterate over all attributes holding ``value``, of any type."""
        options = self._options(None)
        return QueryIterator(
            self,
            rpc.get_attributes_iterate(value, value_type, options, self.trace_context),
            lambda item: rpc.decode_concept(item, self),
            options,
        )

    async def _put(self, request: dict[str, Any], field: str) -> Concept:
        response = await self.exchange(request)
        body = rpc.response_body(response, field)
        return rpc.decode_concept(body.get("concept"), self)

    async def put_entity_type(self, label: str) -> EntityType:
        return await self._put(rpc.put_entity_type(label, self.trace_context), "put_entity_type_res")

    async def put_attribute_type(self, label: str, value_type: ValueType) -> AttributeType:
        return await self._put(
            rpc.put_attribute_type(label, value_type, self.trace_context),
            "put_attribute_type_res",
        )

    async def put_relation_type(self, label: str) -> RelationType:
        return await self._put(
            rpc.put_relation_type(label, self.trace_context), "put_relation_type_res"
        )

    async def put_role(self, label: str) -> Role:
        return await self._put(rpc.put_role(label, self.trace_context), "put_role_res")

    async def put_rule(self, label: str, when: str, then: str) -> Rule:
        return await self._put(
            rpc.put_rule(label, when, then, self.trace_context), "put_rule_res"
        )

    # ---------------------------------------------------- concept methods

    async def run_concept_method(
        self,
        concept_id: str,
        method: str,
        args: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call a single-response method on a remote concept."""
        response = await self.exchange(
            rpc.concept_method(concept_id, method, args, self.trace_context)
        )
        body = rpc.response_body(response, "concept_method_res")
        return body.get("response") or {}

    def iterate_concept_method(
        self,
        concept_id: str,
        method: str,
        args: dict[str, Any] | None,
        mapper: Callable[[Any], Any],
        item_kind: str = "concept",
    ) -> QueryIterator:
        """Call a multi-result method on a remote concept."""
        options = self._options(None)
        return QueryIterator(
            self,
            rpc.concept_method_iterate(concept_id, method, args, options, self.trace_context),
            mapper,
            options,
            item_kind=item_kind,
        )
