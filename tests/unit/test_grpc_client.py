"""
Unit tests for the gRPC transport.

Tests cover:
- Conversion between wire dictionaries and protobuf messages
- Translation of gRPC failures into client errors
- Stream read/write error handling
- Unary calls on the channel
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import grpc
import pytest
from grpc import aio as grpc_aio

from grakn_client import rpc
from grakn_client._generated import (
    Empty,
    KeyspaceRetrieveReq,
    SessionOpenReq,
    SessionOpenRes,
    TransactionReq,
    TransactionRes,
    ValueObject,
)
from grakn_client._generated import grakn_pb2
from grakn_client._grpc_client import (
    SESSION_OPEN,
    GrpcClient,
    GrpcTransactionStream,
    from_message,
    to_message,
    translate_rpc_error,
)
from grakn_client.concept import AttributeType, Entity, Role
from grakn_client.config import ClientConfig
from grakn_client.errors import ServerRejectedError, TransportError, UnreachableError
from grakn_client.iterator import QueryOptions
from grakn_client.rpc import TransactionType
from grakn_client.tracing import TraceContext
from grakn_client.transport import TransactionStream, Transport
from grakn_client.values import ValueType

TRACE = TraceContext(trace_id="span-1", root_id="root-1")


class FakeRpcError(grpc.RpcError):
    def __init__(self, code, details=None):
        self._code = code
        self._details = details

    def code(self):
        return self._code

    def details(self):
        return self._details


class TestMessageConversion:
    """Tests for to_message and from_message."""

    def test_transaction_open(self):
        message = to_message(
            rpc.transaction_open("session-1", TransactionType.WRITE, TRACE), TransactionReq()
        )
        assert message.WhichOneof("req") == "open_req"
        assert message.open_req.session_id == "session-1"
        assert message.open_req.type == grakn_pb2.WRITE
        assert dict(message.metadata) == {"traceParentId": "span-1", "traceRootId": "root-1"}

    @pytest.mark.parametrize(
        "request_",
        [
            rpc.transaction_commit(TRACE),
            rpc.query_iterate("match $x; get;", QueryOptions(infer=False, explain=False), TRACE),
            rpc.iterate_continue("it-1", QueryOptions(batch_size=5), trace=TRACE),
            rpc.get_schema_concept("person", TRACE),
            rpc.get_concept("V1", TRACE),
            rpc.get_attributes_iterate(datetime(2020, 1, 1), trace=TRACE),
            rpc.put_attribute_type("age", ValueType.FLOAT, TRACE),
            rpc.put_rule("r", "{ $x isa person; };", "{ $x has name 'a'; };", TRACE),
            rpc.concept_method("V1", "set_abstract", {"abstract": True}, TRACE),
            rpc.concept_method(
                "V1", "assign", {"role": Role("V2"), "player": Entity("V3")}, TRACE
            ),
            rpc.concept_method_iterate(
                "V1", "attributes", {"attribute_types": [AttributeType("V5")]}, trace=TRACE
            ),
        ],
    )
    def test_transaction_requests_survive_encoding(self, request_):
        data = to_message(request_, TransactionReq()).SerializeToString()
        assert from_message(TransactionReq.FromString(data)) == request_

    def test_false_query_flags_are_sent(self):
        request = rpc.query_iterate("match $x; get;", QueryOptions(infer=False))
        message = to_message(request, TransactionReq())
        assert message.iter_req.query_iter_req.options.HasField("infer_flag")
        assert not message.iter_req.query_iter_req.options.HasField("explain_flag")

    @pytest.mark.parametrize("wire", [{"long": 0}, {"boolean": False}, {"string": ""}])
    def test_default_values_keep_their_tag(self, wire):
        assert from_message(to_message(wire, ValueObject())) == wire

    def test_keyspace_credentials_optional(self):
        message = to_message(rpc.keyspace_retrieve(), KeyspaceRetrieveReq())
        assert message.username == ""
        assert from_message(message) == {}

    def test_iterate_response(self):
        response = TransactionRes()
        item = response.iter_res.items.add()
        item.concept.id = "V1"
        item.concept.base_type = grakn_pb2.ATTRIBUTE
        item.concept.value_type = grakn_pb2.LONG
        item.concept.value.long = 0
        response.iter_res.done = True

        assert from_message(response) == {
            "iter_res": {
                "items": [
                    {
                        "concept": {
                            "id": "V1",
                            "base_type": "ATTRIBUTE",
                            "value_type": "LONG",
                            "value": {"long": 0},
                        }
                    }
                ],
                "done": True,
            }
        }

    def test_concept_map_answer(self):
        response = TransactionRes()
        answer = response.iter_res.items.add().answer
        answer.concept_map.map["x"].id = "V1"
        answer.concept_map.map["x"].base_type = grakn_pb2.ENTITY
        response.iter_res.iterator_id = "it-1"

        body = from_message(response)["iter_res"]
        assert body["items"] == [
            {"answer": {"concept_map": {"map": {"x": {"id": "V1", "base_type": "ENTITY"}}}}}
        ]
        assert body["iterator_id"] == "it-1"

    def test_empty_response_keeps_its_field(self):
        assert from_message(TransactionRes(commit_res=Empty())) == {"commit_res": {}}

    def test_unknown_field_is_unreachable(self):
        with pytest.raises(UnreachableError):
            to_message({"open_session_req": {"keyspace": "social"}}, SessionOpenReq())

    def test_unknown_enum_name_is_unreachable(self):
        with pytest.raises(UnreachableError):
            to_message({"open_req": {"type": "BATCH"}}, TransactionReq())


class TestTranslateRpcError:
    """Tests for translate_rpc_error."""

    @pytest.mark.parametrize(
        "code",
        [grpc.StatusCode.UNAVAILABLE, grpc.StatusCode.DEADLINE_EXCEEDED, grpc.StatusCode.CANCELLED],
    )
    def test_connection_failures(self, code):
        error = translate_rpc_error(FakeRpcError(code, "connection refused"), "localhost:48555")
        assert isinstance(error, TransportError)
        assert error.status == code.name
        assert error.address == "localhost:48555"

    @pytest.mark.parametrize(
        "code",
        [grpc.StatusCode.INVALID_ARGUMENT, grpc.StatusCode.NOT_FOUND, grpc.StatusCode.INTERNAL],
    )
    def test_server_rejections(self, code):
        error = translate_rpc_error(FakeRpcError(code, "label already in use"))
        assert isinstance(error, ServerRejectedError)
        assert error.message == "label already in use"
        assert error.status == code.name

    def test_unknown_with_details_is_rejection(self):
        error = translate_rpc_error(FakeRpcError(grpc.StatusCode.UNKNOWN, "invalid query"))
        assert isinstance(error, ServerRejectedError)

    def test_unknown_without_details_is_transport(self):
        error = translate_rpc_error(FakeRpcError(grpc.StatusCode.UNKNOWN))
        assert isinstance(error, TransportError)


class TestGrpcTransactionStream:
    """Tests for GrpcTransactionStream."""

    @pytest.fixture
    def call(self):
        call = MagicMock()
        call.write = AsyncMock()
        call.read = AsyncMock(return_value=TransactionRes(open_res=Empty()))
        call.done = MagicMock(return_value=False)
        return call

    def test_satisfies_protocol(self, call):
        assert isinstance(GrpcTransactionStream(call, "localhost:48555"), TransactionStream)

    @pytest.mark.asyncio
    async def test_send_and_receive(self, call):
        stream = GrpcTransactionStream(call, "localhost:48555")
        await stream.send(rpc.transaction_commit())
        call.write.assert_awaited_once_with(TransactionReq(commit_req=Empty()))
        assert await stream.receive() == {"open_res": {}}

    @pytest.mark.asyncio
    async def test_end_of_stream_is_transport_error(self, call):
        call.read = AsyncMock(return_value=grpc_aio.EOF)
        stream = GrpcTransactionStream(call, "localhost:48555")
        with pytest.raises(TransportError):
            await stream.receive()

    @pytest.mark.asyncio
    async def test_rpc_error_on_read_is_translated(self, call):
        call.read = AsyncMock(side_effect=FakeRpcError(grpc.StatusCode.INVALID_ARGUMENT, "bad"))
        stream = GrpcTransactionStream(call, "localhost:48555")
        with pytest.raises(ServerRejectedError):
            await stream.receive()

    @pytest.mark.asyncio
    async def test_close_cancels_call_once(self, call):
        stream = GrpcTransactionStream(call, "localhost:48555")
        await stream.close()
        call.cancel.assert_called_once()

        call.done.return_value = True
        await stream.close()
        call.cancel.assert_called_once()


class TestGrpcClient:
    """Tests for GrpcClient."""

    def test_satisfies_protocol(self):
        assert isinstance(GrpcClient(ClientConfig()), Transport)

    @pytest.mark.asyncio
    async def test_requires_connection(self):
        client = GrpcClient(ClientConfig())
        with pytest.raises(TransportError):
            await client.session_open(rpc.session_open("social"))

    @pytest.mark.asyncio
    async def test_session_open_uses_messages(self):
        client = GrpcClient(ClientConfig())
        call = AsyncMock(return_value=SessionOpenRes(session_id="session-1"))
        client._channel = MagicMock()
        client._channel.unary_unary = MagicMock(return_value=call)

        response = await client.session_open(rpc.session_open("social"))

        assert response == {"session_id": "session-1"}
        call.assert_awaited_once_with(SessionOpenReq(keyspace="social"))
        assert client._channel.unary_unary.call_args.args == (SESSION_OPEN,)

    @pytest.mark.asyncio
    async def test_unary_rpc_error_is_translated(self):
        client = GrpcClient(ClientConfig())
        call = AsyncMock(side_effect=FakeRpcError(grpc.StatusCode.UNAVAILABLE, "connection refused"))
        client._channel = MagicMock()
        client._channel.unary_unary = MagicMock(return_value=call)

        with pytest.raises(TransportError):
            await client.keyspace_retrieve(rpc.keyspace_retrieve())
