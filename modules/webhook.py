"""
Webhook integration for posting server status to Discord
"""

import asyncio
import logging
from typing import Dict, Any, List, Optional, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

import aiohttp

from core.config_types import WebhookConfig
from core.exceptions import WebhookError
from parsers.status_parser import MOTDFormatter

logger = logging.getLogger(__name__)

COLOR_ONLINE = 0x2ECC71
COLOR_OFFLINE = 0xE74C3C

# Discord rejects messages carrying more embeds than this
MAX_EMBEDS_PER_MESSAGE = 10
MAX_DESCRIPTION_LENGTH = 4096

@dataclass
class WebhookMessage:
    """Container for webhook message data"""
    content: Optional[str] = None
    embeds: Optional[List[Dict[str, Any]]] = None
    username: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.content:
            payload['content'] = self.content
        if self.embeds:
            payload['embeds'] = self.embeds
        if self.username:
            payload['username'] = self.username
        return payload

class WebhookReporter:
    """Renders query results as embeds and posts them to a webhook"""

    def __init__(self, config: WebhookConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.session = session
        self._owns_session = session is None

    @staticmethod
    def build_embed(result, name: Optional[str] = None) -> Dict[str, Any]:
        """Create a Discord embed for one query result"""
        title = f"{name or result.address.host} Server Status"
        fields = [{
            'name': 'Address',
            'value': str(result.address),
            'inline': False
        }]
        embed: Dict[str, Any] = {
            'title': title,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'footer': {'text': 'CraftPing'}
        }

        if result.success:
            status = result.status
            description = MOTDFormatter.strip_formatting(status.description).strip()
            if description:
                if len(description) > MAX_DESCRIPTION_LENGTH:
                    description = description[:MAX_DESCRIPTION_LENGTH - 3] + "..."
                embed['description'] = description
            embed['color'] = COLOR_ONLINE
            fields.extend([
                {'name': 'Status', 'value': 'Online', 'inline': False},
                {'name': 'Version', 'value': status.version.name or 'Unknown', 'inline': True},
                {
                    'name': 'Players Online',
                    'value': f"{status.players.online}/{status.players.max}",
                    'inline': True
                },
                {'name': 'Latency', 'value': f"{status.latency_ms:.0f}ms", 'inline': True},
            ])
        else:
            embed['color'] = COLOR_OFFLINE
            fields.append({'name': 'Status', 'value': 'Offline', 'inline': False})
            if result.error is not None:
                fields.append({
                    'name': 'Reason',
                    'value': result.error.short_reason,
                    'inline': True
                })

        embed['fields'] = fields
        return embed

    def build_messages(self, results: Sequence, names: Optional[Sequence[str]] = None) -> List[WebhookMessage]:
        """Group result embeds into as few messages as Discord allows"""
        embeds = [
            self.build_embed(result, names[i] if names else None)
            for i, result in enumerate(results)
        ]
        return [
            WebhookMessage(
                embeds=embeds[i:i + MAX_EMBEDS_PER_MESSAGE],
                username=self.config.username
            )
            for i in range(0, len(embeds), MAX_EMBEDS_PER_MESSAGE)
        ]

    async def send_results(self, results: Sequence, names: Optional[Sequence[str]] = None) -> int:
        """Post embeds for every result, returning the number of messages sent"""
        if not self.config.url:
            raise WebhookError("Webhook URL not configured")

        messages = self.build_messages(results, names)
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            )
        try:
            for message in messages:
                await self._send_message(message)
        finally:
            await self.close()

        logger.info(f"Posted {len(results)} results in {len(messages)} webhook messages")
        return len(messages)

    async def _send_message(self, message: WebhookMessage, attempts: int = 3) -> None:
        """Send one message, waiting out rate limits"""
        for _ in range(attempts):
            try:
                async with self.session.post(self.config.url, json=message.to_payload()) as response:
                    if response.status in (200, 204):
                        return
                    if response.status == 429:
                        body = await response.json(content_type=None)
                        retry_after = float((body or {}).get(
                            'retry_after', response.headers.get('retry-after', 1)
                        ))
                        logger.warning(f"Webhook rate limited, waiting {retry_after}s")
                        await asyncio.sleep(retry_after)
                        continue
                    text = await response.text()
                    raise WebhookError(f"Webhook request failed: {response.status} {text[:200]}")
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise WebhookError(f"Error sending webhook message: {e}") from e

        raise WebhookError("Webhook still rate limited after retries")

    async def close(self) -> None:
        """Cleanup resources"""
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None
