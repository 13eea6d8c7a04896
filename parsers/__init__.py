"""
CraftPing Parsers Package
"""

from .status_parser import (
    StatusParser, StatusResponse, VersionInfo, PlayersInfo, PlayerSample, MOTDFormatter
)

__all__ = [
    'StatusParser',
    'StatusResponse',
    'VersionInfo',
    'PlayersInfo',
    'PlayerSample',
    'MOTDFormatter'
]
