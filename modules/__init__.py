"""
CraftPing Modules Package
"""

from modules.targets import load_targets
from modules.webhook import WebhookReporter, WebhookMessage

__all__ = [
    'load_targets',
    'WebhookReporter',
    'WebhookMessage'
]
