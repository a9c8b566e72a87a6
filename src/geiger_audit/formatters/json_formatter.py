"""JSON formatter for geiger-audit."""

from rich.console import Console

from ..report.models import AuditResult
from .base import BaseFormatter
from .tree import PrintConfig

console = Console()


class JsonFormatter(BaseFormatter):
    """Render the SafetyReport as JSON, without any tree shape."""

    def render(self, result: AuditResult, print_config: PrintConfig) -> None:
        console.print_json(self.format(result, print_config))

    def format(self, result: AuditResult, print_config: PrintConfig) -> str:
        return result.safety_report().to_json()
