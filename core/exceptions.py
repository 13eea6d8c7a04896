"""
Custom exceptions for CraftPing
"""

class CraftPingError(Exception):
    """Base exception for CraftPing"""
    pass

class QueryError(CraftPingError):
    """Base of the closed set of status query failures"""

    kind = "query_error"
    short_reason = "failed"

    def __init__(self, reason: str = ""):
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return self.reason or self.short_reason

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason!r})"

class ConnectionFailed(QueryError):
    """DNS failure, refusal or unreachable host"""

    kind = "connection_failed"
    short_reason = "unreachable"

class QueryTimeout(QueryError):
    """Deadline elapsed during connect, write or read"""

    kind = "timeout"
    short_reason = "timed out"

class ProtocolViolation(QueryError):
    """Malformed frame, varint or status payload"""

    kind = "protocol_violation"
    short_reason = "bad response"

class ConfigError(CraftPingError):
    """Configuration-related errors"""
    pass

class WebhookError(CraftPingError):
    """Webhook-related errors"""
    pass
