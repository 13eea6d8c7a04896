"""
Network utilities and helpers
"""

import ipaddress
import logging
from typing import Optional
from dataclasses import dataclass

import dns.asyncresolver
import dns.exception

logger = logging.getLogger(__name__)

DEFAULT_PORT = 25565

@dataclass(frozen=True)
class ServerAddress:
    """Target host and port of one status query"""
    host: str
    port: int = DEFAULT_PORT

    def __post_init__(self):
        if not self.host:
            raise ValueError("Host must not be empty")
        if not NetworkUtils.is_valid_port(self.port, allow_zero=True):
            raise ValueError(f"Invalid port: {self.port}")

    def __str__(self) -> str:
        if ':' in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, text: str, default_port: int = DEFAULT_PORT) -> 'ServerAddress':
        """Parse host, host:port or [ipv6]:port"""
        text = text.strip()
        if not text:
            raise ValueError("Empty address")

        if text.startswith('['):
            host, sep, rest = text[1:].partition(']')
            if not sep:
                raise ValueError(f"Unterminated IPv6 literal: {text}")
            if not rest:
                return cls(host, default_port)
            if not rest.startswith(':'):
                raise ValueError(f"Invalid address: {text}")
            return cls(host, cls._parse_port(rest[1:]))

        # Bare IPv6 literal without a port
        if text.count(':') > 1:
            return cls(text, default_port)

        host, sep, port = text.partition(':')
        if not sep:
            return cls(host, default_port)
        return cls(host, cls._parse_port(port))

    @staticmethod
    def _parse_port(text: str) -> int:
        try:
            port = int(text)
        except ValueError:
            raise ValueError(f"Invalid port: {text!r}")
        if not NetworkUtils.is_valid_port(port):
            raise ValueError(f"Invalid port: {port}")
        return port

class NetworkUtils:
    """Network utility functions"""

    @staticmethod
    def is_valid_ip(ip: str) -> bool:
        """Check if IP address is valid"""
        try:
            ipaddress.ip_address(ip)
            return True
        except ValueError:
            return False

    @staticmethod
    def is_valid_port(port: int, allow_zero: bool = False) -> bool:
        """Check if port number is valid"""
        return (0 if allow_zero else 1) <= port <= 65535

class DNSResolver:
    """SRV record resolution for Minecraft hosts"""

    SRV_PREFIX = "_minecraft._tcp."

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    async def resolve_srv(self, host: str) -> Optional[ServerAddress]:
        """Resolve _minecraft._tcp.<host>, returning None if there is no record"""
        if NetworkUtils.is_valid_ip(host):
            return None

        try:
            resolver = dns.asyncresolver.Resolver()
            resolver.lifetime = self.timeout
            answer = await resolver.resolve(f"{self.SRV_PREFIX}{host}", "SRV")
        except dns.exception.DNSException as e:
            logger.debug(f"No SRV record for {host}: {e}")
            return None

        # Lowest priority first, then highest weight
        records = sorted(answer, key=lambda r: (r.priority, -r.weight))
        for rdata in records:
            target = str(rdata.target).rstrip('.')
            if target:
                logger.debug(f"SRV {host} -> {target}:{rdata.port}")
                return ServerAddress(target, rdata.port)
        return None
