"""
Lazy, batched result iteration over a transaction.

A QueryIterator is returned by queries and by every multi-result accessor.
Results arrive from the server in batches; each batch ends either with a
continuation token (``iterator_id``) or with ``done``.

Invariants:
    - The first request is sent on the first pull, not on creation
    - The next batch is requested only after the previous one is consumed,
      so at most one batch is buffered client-side
    - After ``done`` no further request is ever sent
    - Once the owning transaction closes, pulling an unexhausted iterator
      raises IteratorInvalidError
    - Iterators are not restartable

Example:
    >>> async for answer in tx.query("match $x isa person; get;"):
    ...     print(answer.get("x").id)
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from . import rpc
from .errors import ChannelClosedError, IteratorInvalidError, UnreachableError

if TYPE_CHECKING:
    from .transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryOptions:
    """Options for a query or iteration.

    Unset (None) options are not sent and the server default applies.

    Attributes:
        infer: Whether rule inference is enabled for the query
        explain: Whether answers carry explanations
        batch_size: Maximum number of results per server batch
    """

    infer: bool | None = None
    explain: bool | None = None
    batch_size: int | None = None

    def __post_init__(self) -> None:
        if self.batch_size is not None and self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")


class QueryIterator:
    """Async iterator over the results of one server-side iteration."""

    def __init__(
        self,
        tx: Transaction,
        request: dict[str, Any],
        mapper: Callable[[Any], Any],
        options: QueryOptions | None = None,
        *,
        item_kind: str = "concept",
    ) -> None:
        """Initialize the iterator.

        Args:
            tx: Owning transaction
            request: Opening iterate request, sent on the first pull
            mapper: Converts each wire item to a result
            options: Options re-sent with every continuation
            item_kind: Which wire item field holds the results: ``concept``,
                ``answer`` or ``role_player``
        """
        self._tx = tx
        self._request = request
        self._mapper = mapper
        self._options = options
        self._item_kind = item_kind
        self._buffer: deque[Any] = deque()
        self._iterator_id: str | None = None
        self._started = False
        self._done = False
        self._batches = 0

    @property
    def exhausted(self) -> bool:
        """Whether every result has been pulled."""
        return self._done and not self._buffer

    @property
    def batches(self) -> int:
        """Number of batches received so far."""
        return self._batches

    def __aiter__(self) -> QueryIterator:
        return self

    async def __anext__(self) -> Any:
        return await self.pull()

    async def pull(self) -> Any:
        """Return the next result.

        Raises:
            StopAsyncIteration: When the iteration is exhausted
            IteratorInvalidError: If the owning transaction has closed
        """
        if self.exhausted:
            raise StopAsyncIteration
        if not self._tx.is_open:
            raise IteratorInvalidError(
                "Transaction closed before the iterator was exhausted"
            )

        while not self._buffer:
            if self._done:
                raise StopAsyncIteration
            await self._fetch()

        return self._mapper(self._buffer.popleft())

    async def collect(self) -> list[Any]:
        """Pull every remaining result into a list."""
        return [item async for item in self]

    async def _fetch(self) -> None:
        if not self._started:
            request = self._request
            self._started = True
        else:
            request = rpc.iterate_continue(
                self._iterator_id, self._options, trace=self._tx.trace_context
            )

        try:
            response = await self._tx.exchange(request)
        except ChannelClosedError as e:
            raise IteratorInvalidError(
                "Transaction closed before the iterator was exhausted"
            ) from e

        body = rpc.response_body(response, "iter_res")
        for item in body.get("items") or []:
            if self._item_kind not in item:
                raise UnreachableError(
                    f"Expected {self._item_kind!r} iterate items, got {sorted(item)}", item
                )
            self._buffer.append(item[self._item_kind])
        self._batches += 1

        if body.get("done"):
            self._done = True
            self._iterator_id = None
        elif body.get("iterator_id"):
            self._iterator_id = body["iterator_id"]
        else:
            raise UnreachableError("Iterate response has neither iterator_id nor done", body)

        logger.debug(f"Received iterate batch {self._batches} ({len(self._buffer)} items, done={self._done})")
