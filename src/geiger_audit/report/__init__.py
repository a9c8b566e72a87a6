"""Aggregation of scan results into the audit report."""

from .aggregator import build_report, list_files_used_but_not_scanned, unsafe_totals
from .models import AuditResult, ReportEntry, SafetyReport

__all__ = [
    "AuditResult",
    "ReportEntry",
    "SafetyReport",
    "build_report",
    "list_files_used_but_not_scanned",
    "unsafe_totals",
]
