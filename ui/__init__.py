"""
CraftPing UI Package
"""

from .console import StatusConsole

__all__ = [
    'StatusConsole'
]
