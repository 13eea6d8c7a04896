"""
CraftPing Utils Package
"""

from .concurrency import TaskLimiter, gather_ordered
from .network import ServerAddress, NetworkUtils, DNSResolver

__all__ = [
    'TaskLimiter',
    'gather_ordered',
    'ServerAddress',
    'NetworkUtils',
    'DNSResolver'
]
