"""
Stream transport for a single status query
"""

import asyncio
import logging
import socket
from typing import Optional

from .exceptions import ConnectionFailed, ProtocolViolation, QueryTimeout

logger = logging.getLogger(__name__)

class Connection:
    """Owns one TCP connection for the lifetime of a query"""

    def __init__(self, address, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.address = address
        self.reader = reader
        self.writer = writer
        self.read_timeout: Optional[float] = None
        self.closed = False

    @classmethod
    async def open(cls, address, connect_timeout: float) -> 'Connection':
        """Open a connection, failing with ConnectionFailed or QueryTimeout"""
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(address.host, address.port),
                timeout=connect_timeout
            )
        except asyncio.TimeoutError:
            raise QueryTimeout(f"connect to {address} timed out after {connect_timeout:.2f}s")
        except socket.gaierror as e:
            raise ConnectionFailed(f"DNS lookup failed for {address.host}: {e}") from e
        except UnicodeError as e:
            # IDNA rejects empty or overlong labels
            raise ConnectionFailed(f"invalid host {address.host}: {e}") from e
        except OSError as e:
            raise ConnectionFailed(f"connect to {address} failed: {e}") from e

        logger.debug(f"Connected to {address}")
        return cls(address, reader, writer)

    def set_read_timeout(self, timeout: Optional[float]) -> None:
        """Bound every subsequent read/drain by this many seconds"""
        self.read_timeout = timeout

    async def write(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.read_timeout)
        except asyncio.TimeoutError:
            raise QueryTimeout(f"write to {self.address} timed out")
        except OSError as e:
            raise ConnectionFailed(f"write to {self.address} failed: {e}") from e

    async def read_exact(self, size: int) -> bytes:
        """Read exactly size bytes or fail"""
        try:
            return await asyncio.wait_for(
                self.reader.readexactly(size),
                timeout=self.read_timeout
            )
        except asyncio.TimeoutError:
            raise QueryTimeout(f"read from {self.address} timed out")
        except asyncio.IncompleteReadError as e:
            raise ProtocolViolation(
                f"connection closed mid-frame: expected {size} bytes, got {len(e.partial)}"
            ) from e
        except OSError as e:
            raise ConnectionFailed(f"read from {self.address} failed: {e}") from e

    async def close(self) -> None:
        """Close the transport; safe to call more than once"""
        if self.closed:
            return
        self.closed = True
        self.writer.close()
        try:
            await asyncio.wait_for(self.writer.wait_closed(), timeout=1.0)
        except (asyncio.TimeoutError, OSError) as e:
            logger.debug(f"Error closing connection to {self.address}: {e}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
