"""
Shared configuration types for CraftPing
"""

from typing import Optional
from dataclasses import dataclass

from .codec import MAX_FRAME_SIZE
from .handshake import DEFAULT_PROTOCOL_VERSION

@dataclass
class QueryConfig:
    timeout: float = 5.0
    protocol_version: int = DEFAULT_PROTOCOL_VERSION
    max_frame_size: int = MAX_FRAME_SIZE
    srv_lookup: bool = False
    max_concurrent: Optional[int] = None  # None runs every query at once
    default_port: int = 25565

@dataclass
class WebhookConfig:
    enabled: bool = False
    url: str = ""
    username: str = "CraftPing"
    timeout: float = 10.0

@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None

@dataclass
class UIConfig:
    show_players: bool = True
    strip_formatting: bool = True
