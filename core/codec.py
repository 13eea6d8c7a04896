"""
VarInt and packet framing for the Minecraft wire protocol
"""

import logging
from typing import Awaitable, Callable, Tuple
from dataclasses import dataclass

from .exceptions import ProtocolViolation

logger = logging.getLogger(__name__)

# Largest frame accepted from a server (2 MiB)
MAX_FRAME_SIZE = 2 * 1024 * 1024

VARINT_MAX_BYTES = 5

ReadExact = Callable[[int], Awaitable[bytes]]

@dataclass(frozen=True)
class Packet:
    """A single framed packet"""
    packet_id: int
    payload: bytes = b''

def encode_varint(value: int) -> bytes:
    """Encode an integer as a VarInt

    Accepts unsigned 32-bit values. Negative values down to -2**31 are
    written as their 32-bit two's complement, the way the game encodes
    signed VarInts.
    """
    if not -(1 << 31) <= value < (1 << 32):
        raise ValueError(f"VarInt out of range: {value}")
    value &= 0xFFFFFFFF

    result = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            byte |= 0x80
        result.append(byte)
        if not value:
            break
    return bytes(result)

def decode_varint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a VarInt from a buffer, returning (value, new_offset)"""
    value = 0
    for i in range(VARINT_MAX_BYTES):
        if offset + i >= len(data):
            raise ProtocolViolation("truncated varint")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value & 0xFFFFFFFF, offset + i + 1
    raise ProtocolViolation("varint too long")

async def read_varint(read_exact: ReadExact) -> int:
    """Read a VarInt from a stream one byte at a time"""
    value = 0
    for i in range(VARINT_MAX_BYTES):
        byte = (await read_exact(1))[0]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value & 0xFFFFFFFF
    raise ProtocolViolation("varint too long")

def encode_string(text: str) -> bytes:
    """Encode a length-prefixed UTF-8 string"""
    data = text.encode('utf-8')
    return encode_varint(len(data)) + data

def decode_string(data: bytes, offset: int = 0) -> Tuple[str, int]:
    """Decode a length-prefixed UTF-8 string, returning (text, new_offset)"""
    length, offset = decode_varint(data, offset)
    end = offset + length
    if end > len(data):
        raise ProtocolViolation(f"string length {length} exceeds buffer")
    try:
        return data[offset:end].decode('utf-8'), end
    except UnicodeDecodeError as e:
        raise ProtocolViolation(f"invalid UTF-8 string: {e}") from e

def write_packet(packet_id: int, payload: bytes = b'') -> bytes:
    """Frame a packet as length + id + payload in one buffer"""
    packet_id_bytes = encode_varint(packet_id)
    packet_data = packet_id_bytes + payload
    return encode_varint(len(packet_data)) + packet_data

def decode_packet(frame: bytes) -> Packet:
    """Split a length-stripped frame into packet id and payload"""
    if not frame:
        raise ProtocolViolation("empty frame")
    try:
        packet_id, offset = decode_varint(frame)
    except ProtocolViolation as e:
        raise ProtocolViolation(f"invalid packet id: {e.reason}") from e
    return Packet(packet_id, bytes(frame[offset:]))

def check_frame_length(length: int, max_frame_size: int = MAX_FRAME_SIZE) -> None:
    """Reject declared frame lengths before anything is allocated"""
    if length == 0:
        raise ProtocolViolation("empty frame")
    if length > max_frame_size:
        raise ProtocolViolation(
            f"frame too large: {length} bytes exceeds {max_frame_size}"
        )

async def read_packet(read_exact: ReadExact, max_frame_size: int = MAX_FRAME_SIZE) -> Packet:
    """Read exactly one framed packet from a stream"""
    length = await read_varint(read_exact)
    check_frame_length(length, max_frame_size)

    frame = await read_exact(length)
    if len(frame) != length:
        raise ProtocolViolation(
            f"frame length mismatch: declared {length}, read {len(frame)}"
        )

    packet = decode_packet(frame)
    logger.debug(f"Read packet 0x{packet.packet_id:02x} ({length} bytes)")
    return packet
