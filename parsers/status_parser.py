"""
Status response parser with chat-component flattening
"""

import json
import re
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field

from core.codec import decode_varint
from core.exceptions import ProtocolViolation

logger = logging.getLogger(__name__)

FAVICON_PREFIX = "data:image/png;base64,"

@dataclass(frozen=True)
class VersionInfo:
    name: str
    protocol: int

@dataclass(frozen=True)
class PlayerSample:
    name: str
    id: str

@dataclass(frozen=True)
class PlayersInfo:
    online: int
    max: int
    sample: List[PlayerSample] = field(default_factory=list)

@dataclass
class StatusResponse:
    """Decoded status of one server"""
    version: VersionInfo
    players: PlayersInfo
    description: str = ""
    favicon: Optional[str] = None
    latency: float = 0.0
    enforces_secure_chat: Optional[bool] = None
    prevents_chat_reports: Optional[bool] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def latency_ms(self) -> float:
        return self.latency * 1000

class MOTDFormatter:
    """Flattens description components into plain text"""

    MAX_DEPTH = 32

    @classmethod
    def flatten(cls, description: Any) -> str:
        """Normalize a description to plain text

        A bare string is returned verbatim. A component object yields its
        text followed by its extra children in order. Lists are only valid
        as extra children.
        """
        if description is None:
            return ""
        if isinstance(description, list):
            raise ProtocolViolation("invalid description: list")
        return cls._build_text(description, 0)

    @classmethod
    def _build_text(cls, obj: Any, depth: int) -> str:
        if depth > cls.MAX_DEPTH:
            raise ProtocolViolation("invalid description: nested too deeply")

        if isinstance(obj, str):
            return obj
        elif isinstance(obj, list):
            return ''.join(cls._build_text(item, depth + 1) for item in obj)
        elif isinstance(obj, dict):
            text = obj.get('text', '')
            if not isinstance(text, str):
                raise ProtocolViolation("invalid description: text must be a string")

            extra = obj.get('extra', [])
            if not isinstance(extra, list):
                raise ProtocolViolation("invalid description: extra must be a list")

            return text + ''.join(cls._build_text(child, depth + 1) for child in extra)

        raise ProtocolViolation(f"invalid description: {type(obj).__name__}")

    @staticmethod
    def strip_formatting(text: str) -> str:
        """Remove legacy formatting codes for display"""
        if not text:
            return ""
        return re.sub(r'§[0-9a-fk-orA-FK-OR]', '', text)

class StatusParser:
    """Decodes the status response payload"""

    def parse(self, payload: bytes, latency: float = 0.0) -> StatusResponse:
        document = self.decode_json(payload)

        version = self._require_object(document, 'version')
        players = self._require_object(document, 'players')

        status = StatusResponse(
            version=VersionInfo(
                name=self._require(version, 'version.name', str),
                protocol=self._require(version, 'version.protocol', int),
            ),
            players=PlayersInfo(
                online=self._require(players, 'players.online', int),
                max=self._require(players, 'players.max', int),
                sample=self._parse_sample(players.get('sample')),
            ),
            description=MOTDFormatter.flatten(document.get('description')),
            favicon=self._parse_favicon(document.get('favicon')),
            latency=latency,
            enforces_secure_chat=self._optional_bool(document, 'enforcesSecureChat'),
            prevents_chat_reports=self._optional_bool(document, 'preventsChatReports'),
            raw=document,
        )
        logger.debug(f"Decoded status: {status.version.name} "
                     f"{status.players.online}/{status.players.max}")
        return status

    @staticmethod
    def decode_json(payload: bytes) -> Dict[str, Any]:
        """Decode the length-prefixed JSON string carried by the packet"""
        try:
            length, offset = decode_varint(payload)
        except ProtocolViolation as e:
            raise ProtocolViolation(f"invalid JSON: bad length prefix ({e.reason})") from e

        if length != len(payload) - offset:
            raise ProtocolViolation(
                f"invalid JSON: declared {length} bytes, payload has {len(payload) - offset}"
            )

        try:
            document = json.loads(payload[offset:].decode('utf-8'))
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise ProtocolViolation(f"invalid JSON: {e}") from e

        if not isinstance(document, dict):
            raise ProtocolViolation("invalid JSON: expected an object")
        return document

    @staticmethod
    def _require_object(document: Dict[str, Any], name: str) -> Dict[str, Any]:
        if name not in document:
            raise ProtocolViolation(f"missing field: {name}")
        value = document[name]
        if not isinstance(value, dict):
            raise ProtocolViolation(f"invalid field: {name}")
        return value

    @staticmethod
    def _require(section: Dict[str, Any], name: str, kind: type) -> Any:
        key = name.rsplit('.', 1)[-1]
        if key not in section:
            raise ProtocolViolation(f"missing field: {name}")
        value = section[key]
        # bool is an int subclass but never a valid count or protocol
        if isinstance(value, bool) or not isinstance(value, kind):
            raise ProtocolViolation(f"invalid field: {name}")
        return value

    @staticmethod
    def _parse_sample(sample: Any) -> List[PlayerSample]:
        if sample is None:
            return []
        if not isinstance(sample, list):
            raise ProtocolViolation("invalid field: players.sample")

        players = []
        for entry in sample:
            if (not isinstance(entry, dict)
                    or not isinstance(entry.get('name'), str)
                    or not isinstance(entry.get('id'), str)):
                raise ProtocolViolation("invalid field: players.sample")
            players.append(PlayerSample(name=entry['name'], id=entry['id']))
        return players

    @staticmethod
    def _parse_favicon(favicon: Any) -> Optional[str]:
        if favicon is None:
            return None
        if not isinstance(favicon, str) or not favicon.startswith(FAVICON_PREFIX):
            raise ProtocolViolation("invalid favicon")
        return favicon[len(FAVICON_PREFIX):]

    @staticmethod
    def _optional_bool(document: Dict[str, Any], name: str) -> Optional[bool]:
        value = document.get(name)
        return value if isinstance(value, bool) else None
