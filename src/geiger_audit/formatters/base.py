"""Base formatter interface for geiger-audit output rendering."""

from abc import ABC, abstractmethod
from enum import Enum

from ..report.models import AuditResult
from .tree import PrintConfig


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(self, result: AuditResult, print_config: PrintConfig) -> None:
        """Write the rendered result to stdout."""

    @abstractmethod
    def format(self, result: AuditResult, print_config: PrintConfig) -> str:
        """Return the rendered result as plain text."""
