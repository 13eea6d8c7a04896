import pytest

from core.config_types import WebhookConfig
from core.exceptions import ConnectionFailed, WebhookError
from core.query import QueryResult
from modules.webhook import COLOR_OFFLINE, COLOR_ONLINE, MAX_EMBEDS_PER_MESSAGE, WebhookReporter
from parsers.status_parser import PlayersInfo, StatusResponse, VersionInfo
from utils.network import ServerAddress

def online_result(host="mc.example.net"):
    status = StatusResponse(
        version=VersionInfo("1.21.5", 770),
        players=PlayersInfo(online=4, max=20),
        description="§aWelcome §lhome",
        latency=0.0342,
    )
    return QueryResult(ServerAddress(host, 25565), status=status)

def offline_result():
    return QueryResult(ServerAddress("down.example.net", 25566), error=ConnectionFailed("refused"))

def field_map(embed):
    return {f['name']: f['value'] for f in embed['fields']}

def test_online_embed():
    embed = WebhookReporter.build_embed(online_result(), name="Survival")
    assert embed['title'] == "Survival Server Status"
    assert embed['color'] == COLOR_ONLINE
    assert embed['description'] == "Welcome home"
    fields = field_map(embed)
    assert fields['Address'] == "mc.example.net:25565"
    assert fields['Status'] == "Online"
    assert fields['Players Online'] == "4/20"
    assert fields['Latency'] == "34ms"

def test_offline_embed():
    embed = WebhookReporter.build_embed(offline_result())
    assert embed['title'] == "down.example.net Server Status"
    assert embed['color'] == COLOR_OFFLINE
    assert 'description' not in embed
    fields = field_map(embed)
    assert fields['Status'] == "Offline"
    assert fields['Reason'] == "unreachable"
    assert fields['Address'] == "down.example.net:25566"

def test_messages_respect_embed_cap():
    reporter = WebhookReporter(WebhookConfig(url="https://example.invalid/hook"))
    results = [online_result(f"s{i}.example.net") for i in range(MAX_EMBEDS_PER_MESSAGE + 3)]
    messages = reporter.build_messages(results)
    assert [len(m.embeds) for m in messages] == [MAX_EMBEDS_PER_MESSAGE, 3]
    assert messages[0].to_payload()['username'] == "CraftPing"

class FakeResponse:
    def __init__(self, status, body=None):
        self.status = status
        self.body = body or {}
        self.headers = {}

    async def json(self, content_type=None):
        return self.body

    async def text(self):
        return "error"

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

class FakeSession:
    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.posts = []

    def post(self, url, json=None):
        self.posts.append((url, json))
        status = self.statuses.pop(0)
        body = {'retry_after': 0} if status == 429 else None
        return FakeResponse(status, body)

@pytest.mark.asyncio
async def test_send_results_retries_rate_limit():
    session = FakeSession([429, 204])
    reporter = WebhookReporter(WebhookConfig(url="https://example.invalid/hook"), session=session)
    sent = await reporter.send_results([online_result(), offline_result()])
    assert sent == 1
    assert len(session.posts) == 2
    assert len(session.posts[1][1]['embeds']) == 2

@pytest.mark.asyncio
async def test_send_results_failure_raises():
    session = FakeSession([500])
    reporter = WebhookReporter(WebhookConfig(url="https://example.invalid/hook"), session=session)
    with pytest.raises(WebhookError):
        await reporter.send_results([online_result()])

@pytest.mark.asyncio
async def test_send_results_requires_url():
    with pytest.raises(WebhookError):
        await WebhookReporter(WebhookConfig()).send_results([online_result()])
