"""
Rich console rendering of query results
"""

import json
import logging
from typing import Dict, Any, List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config_types import UIConfig
from parsers.status_parser import MOTDFormatter

logger = logging.getLogger(__name__)

class StatusConsole:
    """Renders query results as a table or as JSON"""

    def __init__(self, console: Optional[Console] = None, config: Optional[UIConfig] = None):
        self.console = console or Console()
        self.config = config or UIConfig()

    def _motd(self, text: str) -> str:
        if self.config.strip_formatting:
            text = MOTDFormatter.strip_formatting(text)
        return ' '.join(text.split())

    def build_table(self, results: Sequence) -> Table:
        table = Table(show_header=True, header_style="bold magenta", expand=True)
        table.add_column("Address", style="cyan", no_wrap=True)
        table.add_column("Status", width=10)
        table.add_column("Version", style="green")
        table.add_column("Players", style="yellow", justify="right")
        table.add_column("Latency", justify="right")
        table.add_column("MOTD", ratio=1)

        for result in results:
            if result.success:
                status = result.status
                table.add_row(
                    str(result.address),
                    Text("Online", style="bold green"),
                    status.version.name,
                    f"{status.players.online}/{status.players.max}",
                    f"{status.latency_ms:.0f}ms",
                    self._motd(status.description),
                )
            else:
                table.add_row(
                    str(result.address),
                    Text("Offline", style="bold red"),
                    "",
                    "",
                    "",
                    Text(result.error.short_reason if result.error else "", style="dim"),
                )
        return table

    def build_players_panel(self, result) -> Optional[Panel]:
        """List sampled players for one online server"""
        if not result.success or not result.status.players.sample:
            return None
        names = ", ".join(player.name for player in result.status.players.sample)
        return Panel(names, title=f"Players on {result.address}", border_style="blue")

    def render(self, results: Sequence) -> None:
        self.console.print(self.build_table(results))
        if self.config.show_players:
            for result in results:
                panel = self.build_players_panel(result)
                if panel is not None:
                    self.console.print(panel)

        online = sum(1 for r in results if r.success)
        self.console.print(f"[bold]{online}[/bold]/{len(results)} servers online")

    @staticmethod
    def result_to_dict(result) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'address': str(result.address),
            'online': result.success,
        }
        if result.success:
            status = result.status
            data.update({
                'version': {'name': status.version.name, 'protocol': status.version.protocol},
                'players': {
                    'online': status.players.online,
                    'max': status.players.max,
                    'sample': [{'name': p.name, 'id': p.id} for p in status.players.sample],
                },
                'description': status.description,
                'favicon': status.favicon,
                'latency_ms': round(status.latency_ms, 2),
            })
        else:
            data['error'] = {
                'kind': result.error.kind,
                'reason': result.error.reason,
            }
        return data

    def render_json(self, results: Sequence) -> str:
        output: List[Dict[str, Any]] = [self.result_to_dict(r) for r in results]
        text = json.dumps(output, indent=2, ensure_ascii=False)
        self.console.print_json(text)
        return text
