"""
CraftPing Core Package
"""

from .codec import Packet, encode_varint, decode_varint, write_packet, read_packet, MAX_FRAME_SIZE
from .handshake import build_handshake, build_status_request, DEFAULT_PROTOCOL_VERSION
from .connector import Connection
from .config import ConfigManager
from .config_types import QueryConfig
from .exceptions import *

__version__ = "0.3.0"

__all__ = [
    'Packet',
    'encode_varint',
    'decode_varint',
    'write_packet',
    'read_packet',
    'MAX_FRAME_SIZE',
    'build_handshake',
    'build_status_request',
    'DEFAULT_PROTOCOL_VERSION',
    'Connection',
    'ConfigManager',
    'QueryConfig',
    'CraftPingError',
    'QueryError',
    'ConnectionFailed',
    'QueryTimeout',
    'ProtocolViolation',
    'ConfigError',
    'WebhookError'
]
