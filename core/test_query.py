import asyncio
import json
import socket
import time

import pytest

from core.codec import encode_string, encode_varint, read_packet, write_packet
from core.config_types import QueryConfig
from core.exceptions import ConnectionFailed, ProtocolViolation, QueryTimeout
from core.query import QueryState, StatusQuery, query, query_many
from utils.network import ServerAddress

STATUS = {
    "version": {"name": "Paper 1.21.5", "protocol": 770},
    "players": {"online": 1, "max": 20, "sample": [{"name": "Alex", "id": "0-0"}]},
    "description": {"text": "Welcome ", "extra": [{"text": "home"}]},
}

def closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]

class FakeServer:
    """Minimal status server speaking the handshake/status exchange"""

    def __init__(self, document=STATUS, response: bytes = None, delay: float = 0.0,
                 silent: bool = False):
        self.response = response if response is not None else write_packet(
            0x00, encode_string(json.dumps(document))
        )
        self.delay = delay
        self.silent = silent
        self.handshakes = []
        self.server = None

    async def handle(self, reader, writer):
        async def read_exact(size):
            return await reader.readexactly(size)

        try:
            self.handshakes.append(await read_packet(read_exact))
            await read_packet(read_exact)
            if self.silent:
                # Never answer; wait for the client to hang up
                await reader.read()
                return
            await asyncio.sleep(self.delay)
            writer.write(self.response)
            await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()

    async def __aenter__(self) -> ServerAddress:
        self.server = await asyncio.start_server(self.handle, "127.0.0.1", 0)
        return ServerAddress("127.0.0.1", self.server.sockets[0].getsockname()[1])

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.server.close()

@pytest.mark.asyncio
async def test_query_success():
    fake = FakeServer()
    async with fake as address:
        status = await query(address, timeout=2.0)

    assert status.version.name == "Paper 1.21.5"
    assert status.players.online == 1
    assert status.players.sample[0].name == "Alex"
    assert status.description == "Welcome home"
    assert 0 < status.latency < 2.0
    assert fake.handshakes[0].packet_id == 0

@pytest.mark.asyncio
async def test_handshake_carries_configured_protocol_version():
    fake = FakeServer()
    async with fake as address:
        await query(address, timeout=2.0, config=QueryConfig(protocol_version=47))
    protocol = fake.handshakes[0].payload[0]
    assert protocol == 47

@pytest.mark.asyncio
async def test_latency_covers_server_delay():
    async with FakeServer(delay=0.2) as address:
        status = await query(address, timeout=2.0)
    assert status.latency >= 0.2

@pytest.mark.asyncio
async def test_state_machine_reaches_decoded():
    async with FakeServer() as address:
        status_query = StatusQuery(address)
        assert status_query.state is QueryState.IDLE
        await status_query.run(timeout=2.0)
    assert status_query.state is QueryState.DECODED

@pytest.mark.asyncio
async def test_query_objects_are_single_use():
    async with FakeServer() as address:
        status_query = StatusQuery(address)
        await status_query.run(timeout=2.0)
        with pytest.raises(RuntimeError):
            await status_query.run(timeout=2.0)

@pytest.mark.asyncio
async def test_connection_refused():
    status_query = StatusQuery(ServerAddress("127.0.0.1", closed_port()))
    with pytest.raises(ConnectionFailed):
        await status_query.run(timeout=2.0)
    assert status_query.state is QueryState.FAILED
    assert isinstance(status_query.error, ConnectionFailed)

@pytest.mark.asyncio
async def test_silent_server_times_out_within_deadline():
    async with FakeServer(silent=True) as address:
        status_query = StatusQuery(address)
        started = time.perf_counter()
        with pytest.raises(QueryTimeout):
            await status_query.run(timeout=0.5)
        elapsed = time.perf_counter() - started

    assert 0.4 <= elapsed < 0.8
    assert status_query.state is QueryState.FAILED

@pytest.mark.asyncio
async def test_oversized_frame_is_protocol_violation():
    response = encode_varint(10 * 1024 * 1024) + b'\x00' * 64
    async with FakeServer(response=response) as address:
        with pytest.raises(ProtocolViolation) as exc:
            await query(address, timeout=2.0)
    assert "frame too large" in exc.value.reason

@pytest.mark.asyncio
async def test_truncated_frame_is_protocol_violation():
    response = encode_varint(100) + b'\x00' * 10
    async with FakeServer(response=response) as address:
        with pytest.raises(ProtocolViolation):
            await query(address, timeout=2.0)

@pytest.mark.asyncio
async def test_unexpected_packet_id():
    response = write_packet(0x01, encode_string(json.dumps(STATUS)))
    async with FakeServer(response=response) as address:
        with pytest.raises(ProtocolViolation):
            await query(address, timeout=2.0)

@pytest.mark.asyncio
async def test_missing_field_from_server():
    document = {"version": {"name": "x", "protocol": 1}, "players": {"online": 0}}
    async with FakeServer(document=document) as address:
        with pytest.raises(ProtocolViolation) as exc:
            await query(address, timeout=2.0)
    assert exc.value.reason == "missing field: players.max"

@pytest.mark.asyncio
async def test_query_many_isolates_failures_and_preserves_order():
    async with FakeServer() as a, FakeServer(delay=0.1) as b, FakeServer(silent=True) as c, \
            FakeServer() as d, FakeServer(document={"bad": True}) as e:
        refused = ServerAddress("127.0.0.1", closed_port())
        addresses = [a, c, b, refused, d, e]

        started = time.perf_counter()
        results = await query_many(addresses, timeout=0.6)
        elapsed = time.perf_counter() - started

    assert [r.address for r in results] == addresses
    assert [r.success for r in results] == [True, False, True, False, True, False]
    assert isinstance(results[1].error, QueryTimeout)
    assert isinstance(results[3].error, ConnectionFailed)
    assert isinstance(results[5].error, ProtocolViolation)
    assert results[2].latency >= 0.1
    # Bounded by one deadline, not the sum of them
    assert elapsed < 1.2

@pytest.mark.asyncio
async def test_query_many_with_one_unreachable_of_five():
    async with FakeServer() as a, FakeServer() as b, FakeServer(silent=True) as c, \
            FakeServer() as d, FakeServer() as e:
        addresses = [a, b, c, d, e]
        started = time.perf_counter()
        results = await query_many(addresses, timeout=0.5)
        elapsed = time.perf_counter() - started

    assert [r.success for r in results] == [True, True, False, True, True]
    assert results[2].error.short_reason == "timed out"
    assert elapsed < 1.0

@pytest.mark.asyncio
async def test_query_many_with_concurrency_limit():
    async with FakeServer(delay=0.05) as a, FakeServer(delay=0.05) as b:
        results = await query_many([a, b, a], timeout=2.0, config=QueryConfig(max_concurrent=1))
    assert [r.success for r in results] == [True, True, True]

@pytest.mark.asyncio
async def test_query_many_empty():
    assert await query_many([], timeout=1.0) == []

@pytest.mark.asyncio
async def test_query_many_survives_deeply_nested_json():
    depth = 200000
    nested = write_packet(0x00, encode_string("[" * depth + "]" * depth))
    async with FakeServer() as good, FakeServer(response=nested) as hostile:
        results = await query_many([good, hostile], timeout=2.0)

    assert [r.success for r in results] == [True, False]
    assert isinstance(results[1].error, ProtocolViolation)

@pytest.mark.asyncio
@pytest.mark.parametrize("srv_lookup", [False, True])
async def test_query_many_with_invalid_host_label(srv_lookup):
    bad = ServerAddress("a" * 64 + ".example", 25565)
    async with FakeServer() as good:
        results = await query_many([good, bad], timeout=2.0,
                                   config=QueryConfig(srv_lookup=srv_lookup))

    assert [r.address for r in results] == [good, bad]
    assert [r.success for r in results] == [True, False]
    assert isinstance(results[1].error, ConnectionFailed)

@pytest.mark.asyncio
async def test_overlong_host_is_connection_failure():
    with pytest.raises(ConnectionFailed) as exc:
        await query(ServerAddress("a." * 150 + "example", 25565), timeout=2.0)
    assert "invalid address" in exc.value.reason
