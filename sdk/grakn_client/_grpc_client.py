"""
Internal gRPC transport for the Grakn client.

This module provides the low-level gRPC communication layer.
It is internal to the client and should not be used directly by users.

Requests are built as dictionaries by the rpc module and converted here to
the protobuf messages of proto/grakn.proto; responses are converted back.
All grpc exceptions are translated into the client's error taxonomy here;
nothing above this module sees grpc or protobuf types.

Users should use GraknClient instead, which provides a clean Python API.
"""

from __future__ import annotations

import logging
from typing import Any

import grpc
from google.protobuf.descriptor import FieldDescriptor
from google.protobuf.message import Message
from grpc import aio as grpc_aio

from ._generated import (
    Empty,
    KeyspaceDeleteReq,
    KeyspaceRetrieveReq,
    KeyspaceRetrieveRes,
    SessionCloseReq,
    SessionOpenReq,
    SessionOpenRes,
    TransactionReq,
    TransactionRes,
)
from ._generated.grakn_pb2 import PACKAGE
from .config import ClientConfig
from .errors import GraknClientError, ServerRejectedError, TransportError, UnreachableError

logger = logging.getLogger(__name__)

SESSION_OPEN = f"/{PACKAGE}.SessionService/open"
SESSION_CLOSE = f"/{PACKAGE}.SessionService/close"
SESSION_TRANSACTION = f"/{PACKAGE}.SessionService/transaction"
KEYSPACE_RETRIEVE = f"/{PACKAGE}.KeyspaceService/retrieve"
KEYSPACE_DELETE = f"/{PACKAGE}.KeyspaceService/delete"

# Status codes meaning no response could be obtained from the server
_TRANSPORT_CODES = frozenset(
    {
        grpc.StatusCode.UNAVAILABLE,
        grpc.StatusCode.DEADLINE_EXCEEDED,
        grpc.StatusCode.CANCELLED,
    }
)


def _is_map(field: FieldDescriptor) -> bool:
    return field.message_type is not None and field.message_type.GetOptions().map_entry


def _map_holds_messages(field: FieldDescriptor) -> bool:
    return field.message_type.fields_by_name["value"].message_type is not None


def to_message(body: dict[str, Any], message: Message) -> Message:
    """Fill a protobuf message from a wire dictionary.

    Keys name message fields; enum fields take the enum value name and
    None values are skipped.

    Raises:
        UnreachableError: If a key or enum name is not in the schema
    """
    descriptor = message.DESCRIPTOR
    for name, value in body.items():
        if value is None:
            continue
        field = descriptor.fields_by_name.get(name)
        if field is None:
            raise UnreachableError(f"{descriptor.name} has no field {name!r}", body)

        if _is_map(field):
            target = getattr(message, name)
            for key, item in value.items():
                if _map_holds_messages(field):
                    to_message(item, target[key])
                else:
                    target[key] = item
        elif field.label == FieldDescriptor.LABEL_REPEATED:
            target = getattr(message, name)
            for item in value:
                if field.message_type is not None:
                    to_message(item, target.add())
                else:
                    target.append(item)
        elif field.message_type is not None:
            target = getattr(message, name)
            target.SetInParent()
            to_message(value, target)
        elif field.enum_type is not None:
            enum_value = field.enum_type.values_by_name.get(value)
            if enum_value is None:
                raise UnreachableError(f"{field.enum_type.name} has no value {value!r}", body)
            setattr(message, name, enum_value.number)
        else:
            setattr(message, name, value)
    return message


def from_message(message: Message) -> dict[str, Any]:
    """Convert a protobuf message to a wire dictionary.

    Only fields that are set appear. Enum values become their names;
    numbers outside the schema are kept as numbers.
    """
    body: dict[str, Any] = {}
    for field, value in message.ListFields():
        if _is_map(field):
            if _map_holds_messages(field):
                body[field.name] = {key: from_message(item) for key, item in value.items()}
            else:
                body[field.name] = dict(value)
        elif field.label == FieldDescriptor.LABEL_REPEATED:
            if field.message_type is not None:
                body[field.name] = [from_message(item) for item in value]
            else:
                body[field.name] = list(value)
        elif field.message_type is not None:
            body[field.name] = from_message(value)
        elif field.enum_type is not None:
            enum_value = field.enum_type.values_by_number.get(value)
            body[field.name] = enum_value.name if enum_value is not None else value
        else:
            body[field.name] = value
    return body


def translate_rpc_error(error: grpc.RpcError, address: str | None = None) -> GraknClientError:
    """Map a gRPC failure to TransportError or ServerRejectedError."""
    code = error.code() if callable(getattr(error, "code", None)) else None
    details = error.details() if callable(getattr(error, "details", None)) else None
    status = code.name if code is not None else None
    message = details or str(error)

    if code is None or code in _TRANSPORT_CODES or (code == grpc.StatusCode.UNKNOWN and not details):
        return TransportError(message, address=address, status=status)
    return ServerRejectedError(message, status=status)


class GrpcTransactionStream:
    """Transaction stream over a bidirectional gRPC call."""

    def __init__(self, call: Any, address: str) -> None:
        self._call = call
        self._address = address

    async def send(self, request: dict[str, Any]) -> None:
        try:
            await self._call.write(to_message(request, TransactionReq()))
        except grpc.RpcError as e:
            raise translate_rpc_error(e, self._address) from e

    async def receive(self) -> dict[str, Any]:
        try:
            response = await self._call.read()
        except grpc.RpcError as e:
            raise translate_rpc_error(e, self._address) from e

        if response is grpc_aio.EOF:
            raise TransportError(
                "Transaction stream ended unexpectedly", address=self._address
            )
        return from_message(response)

    async def close(self) -> None:
        if not self._call.done():
            self._call.cancel()


class GrpcClient:
    """Internal gRPC transport for Grakn.

    This class handles all gRPC communication with the server.
    It manages connection lifecycle and provides async methods
    for all RPC operations.

    This is an internal class - users should use GraknClient instead.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        credentials: grpc.ChannelCredentials | None = None,
    ) -> None:
        """Initialize the gRPC client.

        Args:
            config: Client configuration (address, TLS, message size)
            credentials: Optional TLS credentials
        """
        self._config = config
        self._credentials = credentials
        self._channel: grpc_aio.Channel | None = None

    @property
    def address(self) -> str:
        return self._config.address

    async def connect(self) -> None:
        """Establish connection to the server."""
        if self._channel is not None:
            return

        options = [
            ("grpc.max_send_message_length", self._config.max_message_size),
            ("grpc.max_receive_message_length", self._config.max_message_size),
        ]

        if self._config.secure:
            self._channel = grpc_aio.secure_channel(
                self.address,
                self._credentials or grpc.ssl_channel_credentials(),
                options=options,
            )
        else:
            self._channel = grpc_aio.insecure_channel(self.address, options=options)

        logger.debug(f"Connected to Grakn server at {self.address}")

    async def close(self) -> None:
        """Close the connection."""
        if self._channel:
            await self._channel.close()
            self._channel = None
            logger.debug("Disconnected from Grakn server")

    async def __aenter__(self) -> GrpcClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _ensure_connected(self) -> grpc_aio.Channel:
        """Ensure we're connected and return the channel."""
        if self._channel is None:
            raise TransportError("Not connected. Call connect() first.", address=self.address)
        return self._channel

    async def _unary(
        self,
        method: str,
        request: dict[str, Any],
        request_type: type[Message],
        response_type: type[Message],
    ) -> dict[str, Any]:
        channel = self._ensure_connected()
        call = channel.unary_unary(
            method,
            request_serializer=request_type.SerializeToString,
            response_deserializer=response_type.FromString,
        )
        message = to_message(request, request_type())
        try:
            response = await call(message)
        except grpc.RpcError as e:
            raise translate_rpc_error(e, self.address) from e
        return from_message(response)

    async def session_open(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._unary(SESSION_OPEN, request, SessionOpenReq, SessionOpenRes)

    async def session_close(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._unary(SESSION_CLOSE, request, SessionCloseReq, Empty)

    async def keyspace_retrieve(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._unary(
            KEYSPACE_RETRIEVE, request, KeyspaceRetrieveReq, KeyspaceRetrieveRes
        )

    async def keyspace_delete(self, request: dict[str, Any]) -> dict[str, Any]:
        return await self._unary(KEYSPACE_DELETE, request, KeyspaceDeleteReq, Empty)

    async def transaction_stream(self) -> GrpcTransactionStream:
        """Open a bidirectional stream for one transaction."""
        channel = self._ensure_connected()
        call = channel.stream_stream(
            SESSION_TRANSACTION,
            request_serializer=TransactionReq.SerializeToString,
            response_deserializer=TransactionRes.FromString,
        )()
        return GrpcTransactionStream(call, self.address)
