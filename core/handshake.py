"""
Outbound packets for the status handshake
"""

import struct

from .codec import encode_string, encode_varint, write_packet

# Packet constants
HANDSHAKE_PACKET = 0x00
STATUS_REQUEST_PACKET = 0x00
STATUS_RESPONSE_PACKET = 0x00

# States
STATE_STATUS = 1

DEFAULT_PROTOCOL_VERSION = 770  # 1.21.5

MAX_HOST_LENGTH = 255

def build_handshake(address, protocol_version: int = DEFAULT_PROTOCOL_VERSION) -> bytes:
    """Create the handshake packet announcing the status state"""
    host_bytes = address.host.encode('utf-8')
    if len(host_bytes) > MAX_HOST_LENGTH:
        raise ValueError(f"Host name too long for handshake: {len(host_bytes)} bytes")
    if not 0 <= address.port <= 0xFFFF:
        raise ValueError(f"Invalid port: {address.port}")

    data = (
        encode_varint(protocol_version)
        + encode_string(address.host)
        + struct.pack('>H', address.port)
        + encode_varint(STATE_STATUS)
    )
    return write_packet(HANDSHAKE_PACKET, data)

def build_status_request() -> bytes:
    return write_packet(STATUS_REQUEST_PACKET)
