"""
Status query orchestration: single bounded queries and concurrent batches
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Iterable, List, Optional
from dataclasses import dataclass

from .codec import read_packet
from .config_types import QueryConfig
from .connector import Connection
from .exceptions import ConnectionFailed, ProtocolViolation, QueryError, QueryTimeout
from .handshake import STATUS_RESPONSE_PACKET, build_handshake, build_status_request
from parsers.status_parser import StatusParser, StatusResponse
from utils.concurrency import gather_ordered
from utils.network import DNSResolver, ServerAddress

logger = logging.getLogger(__name__)

class QueryState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    HANDSHAKE_SENT = "handshake_sent"
    STATUS_REQUESTED = "status_requested"
    AWAITING_RESPONSE = "awaiting_response"
    DECODED = "decoded"
    FAILED = "failed"

@dataclass
class QueryResult:
    """Outcome of one query in a batch"""
    address: ServerAddress
    status: Optional[StatusResponse] = None
    error: Optional[QueryError] = None

    @property
    def success(self) -> bool:
        return self.status is not None

    @property
    def latency(self) -> Optional[float]:
        return self.status.latency if self.status else None

class StatusQuery:
    """A single-use status query against one server"""

    def __init__(self, address: ServerAddress, config: Optional[QueryConfig] = None,
                 parser: Optional[StatusParser] = None):
        self.address = address
        self.config = config or QueryConfig()
        self.parser = parser or StatusParser()
        self.state = QueryState.IDLE
        self.error: Optional[QueryError] = None
        self._deadline = 0.0

    async def run(self, timeout: Optional[float] = None) -> StatusResponse:
        """Run the query under one overall deadline"""
        if self.state is not QueryState.IDLE:
            raise RuntimeError("StatusQuery objects are single-use")

        timeout = self.config.timeout if timeout is None else timeout
        self._deadline = asyncio.get_running_loop().time() + timeout
        self.state = QueryState.CONNECTING
        try:
            # Outer bound covers every step, including DNS and close
            return await asyncio.wait_for(self._run(), timeout=timeout)
        except asyncio.TimeoutError:
            self._fail(QueryTimeout(f"query to {self.address} exceeded {timeout:.2f}s"))
            raise self.error
        except QueryError as e:
            self._fail(e)
            raise
        except BaseException:
            self.state = QueryState.FAILED
            raise

    def _fail(self, error: QueryError) -> None:
        self.state = QueryState.FAILED
        self.error = error
        logger.debug(f"Query to {self.address} failed in {error.kind}: {error}")

    def _remaining(self) -> float:
        remaining = self._deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise QueryTimeout(f"query to {self.address} ran out of time")
        return remaining

    async def _resolve(self) -> ServerAddress:
        if not self.config.srv_lookup:
            return self.address
        resolver = DNSResolver(timeout=self._remaining())
        target = await resolver.resolve_srv(self.address.host)
        return target or self.address

    async def _run(self) -> StatusResponse:
        target = await self._resolve()
        try:
            handshake = build_handshake(target, self.config.protocol_version)
        except ValueError as e:
            raise ConnectionFailed(f"invalid address {target}: {e}") from e

        start_time = time.perf_counter()
        connection = await Connection.open(target, connect_timeout=self._remaining())
        async with connection:
            connection.set_read_timeout(self._remaining())
            await connection.write(handshake)
            self.state = QueryState.HANDSHAKE_SENT

            await connection.write(build_status_request())
            self.state = QueryState.STATUS_REQUESTED

            connection.set_read_timeout(self._remaining())
            self.state = QueryState.AWAITING_RESPONSE
            packet = await read_packet(connection.read_exact, self.config.max_frame_size)
            latency = time.perf_counter() - start_time

        if packet.packet_id != STATUS_RESPONSE_PACKET:
            raise ProtocolViolation(f"unexpected packet id 0x{packet.packet_id:02x}")

        status = self.parser.parse(packet.payload, latency=latency)
        self.state = QueryState.DECODED
        logger.debug(f"Query to {self.address} succeeded in {status.latency_ms:.0f}ms")
        return status

async def query(address: ServerAddress, timeout: Optional[float] = None,
                config: Optional[QueryConfig] = None) -> StatusResponse:
    """Query one server, raising a QueryError subclass on failure"""
    return await StatusQuery(address, config).run(timeout)

async def query_many(addresses: Iterable[ServerAddress], timeout: Optional[float] = None,
                     config: Optional[QueryConfig] = None) -> List[QueryResult]:
    """Query every address concurrently; one result per address, in input order"""
    config = config or QueryConfig()
    targets = list(addresses)

    async def worker(address: ServerAddress) -> QueryResult:
        try:
            status = await StatusQuery(address, config).run(timeout)
        except QueryError as e:
            return QueryResult(address, error=e)
        return QueryResult(address, status=status)

    started = time.perf_counter()
    results = await gather_ordered(targets, worker, config.max_concurrent)

    online = sum(1 for r in results if r.success)
    logger.info(f"Queried {len(results)} servers in {time.perf_counter() - started:.2f}s "
                f"({online} online, {len(results) - online} failed)")
    return results
