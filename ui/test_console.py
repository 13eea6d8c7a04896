import io
import json

from rich.console import Console

from core.exceptions import QueryTimeout
from core.query import QueryResult
from parsers.status_parser import PlayerSample, PlayersInfo, StatusResponse, VersionInfo
from ui.console import StatusConsole
from utils.network import ServerAddress

def make_results():
    status = StatusResponse(
        version=VersionInfo("1.21.5", 770),
        players=PlayersInfo(online=1, max=10, sample=[PlayerSample("Alex", "abc")]),
        description="§6Gold\nline",
        favicon="iVBORw0KGgo=",
        latency=0.012,
    )
    return [
        QueryResult(ServerAddress("up.example.net", 25565), status=status),
        QueryResult(ServerAddress("slow.example.net", 25565), error=QueryTimeout("read timed out")),
    ]

def make_console():
    buffer = io.StringIO()
    console = Console(file=buffer, width=160, color_system=None)
    return StatusConsole(console=console), buffer

def test_render_table():
    ui, buffer = make_console()
    ui.render(make_results())
    output = buffer.getvalue()
    assert "up.example.net:25565" in output
    assert "Online" in output
    assert "Offline" in output
    assert "timed out" in output
    assert "Gold line" in output
    assert "Players on up.example.net:25565" in output
    assert "1/2 servers online" in output

def test_result_to_dict():
    online, offline = [StatusConsole.result_to_dict(r) for r in make_results()]
    assert online['online'] is True
    assert online['players']['sample'] == [{'name': 'Alex', 'id': 'abc'}]
    assert online['latency_ms'] == 12.0
    assert offline == {
        'address': 'slow.example.net:25565',
        'online': False,
        'error': {'kind': 'timeout', 'reason': 'read timed out'},
    }

def test_render_json():
    ui, _ = make_console()
    text = ui.render_json(make_results())
    data = json.loads(text)
    assert [entry['online'] for entry in data] == [True, False]
