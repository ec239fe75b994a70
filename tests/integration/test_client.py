"""
Integration tests for GraknClient and Session.

Tests cover:
- Client connection lifecycle
- Session lifecycle and transaction ownership
- Keyspace administration
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from grakn_client import (
    ChannelClosedError,
    ClientConfig,
    GraknClient,
    ServerRejectedError,
    TransactionType,
    TransportError,
)
from tests.fakes import FakeServer


@pytest.fixture
def server():
    return FakeServer()


class TestGraknClient:
    """Tests for GraknClient."""

    def test_address_overrides_config(self, server):
        client = GraknClient("grakn.internal:1729", config=ClientConfig(batch_size=5), transport=server)
        assert client.config.address == "grakn.internal:1729"
        assert client.config.batch_size == 5

    @pytest.mark.asyncio
    async def test_context_manager_connects_and_closes(self, server):
        async with GraknClient(transport=server):
            assert server.connected
        assert not server.connected

    @pytest.mark.asyncio
    async def test_connect_failure_is_transport_error(self):
        transport = AsyncMock()
        transport.connect = AsyncMock(side_effect=OSError("connection refused"))
        client = GraknClient(transport=transport)

        with pytest.raises(TransportError) as exc_info:
            await client.connect()
        assert exc_info.value.address == "localhost:48555"

    @pytest.mark.asyncio
    async def test_close_closes_sessions(self, server):
        client = GraknClient(transport=server)
        session = await client.open_session("social")

        await client.close()

        assert not session.is_open
        assert server.sessions == {}

    @pytest.mark.asyncio
    async def test_batch_size_from_config(self, server):
        server.answers["match $x; get;"] = []
        async with GraknClient(config=ClientConfig(batch_size=7), transport=server) as client:
            async with client.session("social") as session:
                async with session.read() as tx:
                    await tx.query("match $x; get;").collect()

        assert server.streams[-1].batch_sizes == [7]


class TestSession:
    """Tests for Session."""

    @pytest.mark.asyncio
    async def test_session_scope(self, server):
        async with GraknClient(transport=server) as client:
            async with client.session("social") as session:
                assert session.keyspace == "social"
                assert session.session_id in server.sessions
            assert not session.is_open
            assert server.sessions == {}

    @pytest.mark.asyncio
    async def test_close_closes_open_transactions(self, server):
        async with GraknClient(transport=server) as client:
            session = await client.open_session("social")
            tx = await session.open_transaction(TransactionType.WRITE)

            await session.close()

            assert not tx.is_open
            with pytest.raises(ChannelClosedError):
                await tx.put_entity_type("person")

    @pytest.mark.asyncio
    async def test_closed_session_cannot_open_transactions(self, server):
        async with GraknClient(transport=server) as client:
            session = await client.open_session("social")
            await session.close()

            with pytest.raises(ChannelClosedError):
                await session.open_transaction(TransactionType.READ)

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, server):
        async with GraknClient(transport=server) as client:
            session = await client.open_session("social")
            await session.close()
            await session.close()

        closes = [r for r in server.session_requests if "session_id" in r]
        assert len(closes) == 1

    @pytest.mark.asyncio
    async def test_closed_sessions_are_released(self, server):
        async with GraknClient(transport=server) as client:
            for _ in range(5):
                session = await client.open_session("social")
                await session.close()

            assert client._sessions == set()

    @pytest.mark.asyncio
    async def test_close_during_transaction_open(self, server):
        async with GraknClient(transport=server) as client:
            session = await client.open_session("social")
            server.hold = asyncio.Event()

            opening = asyncio.ensure_future(session.open_transaction(TransactionType.WRITE))
            while not server.requests_of("open_req"):
                await asyncio.sleep(0)
            await session.close()
            server.hold.set()

            with pytest.raises(ChannelClosedError):
                await asyncio.wait_for(opening, timeout=1)
            assert server.streams[-1].closed

    @pytest.mark.asyncio
    async def test_transaction_scope_closes_on_error(self, server):
        async with GraknClient(transport=server) as client:
            async with client.session("social") as session:
                with pytest.raises(RuntimeError):
                    async with session.transaction(TransactionType.WRITE) as tx:
                        raise RuntimeError("boom")
                assert not tx.is_open


class TestKeyspaceManager:
    """Tests for keyspace administration."""

    @pytest.mark.asyncio
    async def test_retrieve(self, server):
        async with GraknClient(transport=server) as client:
            async with client.session("social"):
                pass
            async with client.session("finance"):
                pass

            assert await client.keyspaces().retrieve() == ["finance", "social"]

    @pytest.mark.asyncio
    async def test_delete(self, server):
        async with GraknClient(transport=server) as client:
            async with client.session("social"):
                pass

            await client.keyspaces().delete("social")

            assert await client.keyspaces().retrieve() == []

    @pytest.mark.asyncio
    async def test_delete_unknown_keyspace(self, server):
        async with GraknClient(transport=server) as client:
            with pytest.raises(ServerRejectedError):
                await client.keyspaces().delete("missing")

    @pytest.mark.asyncio
    async def test_credentials_sent(self, server):
        config = ClientConfig(username="admin", password="secret")
        async with GraknClient(config=config, transport=server) as client:
            await client.keyspaces().retrieve()

        request = server.session_requests[-1]
        assert (request["username"], request["password"]) == ("admin", "secret")
