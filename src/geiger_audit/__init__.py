"""
Geiger Audit - unsafe usage auditing for Rust dependency graphs.

Drives a forced cargo build to learn which source files are really compiled,
scans every file of every package in the dependency graph for `unsafe`
functions, expressions, impls, traits and methods, and reports the counts per
package, split into code used by the build and code that is not.
"""

__version__ = "0.1.0"
__author__ = "Naman Agarwal"

from .api import audit
from .report.models import AuditResult, ReportEntry, SafetyReport
from .scanning.counters import CounterBlock, Count, PackageCounters

__all__ = [
    "audit",  # Main entry point
    "AuditResult",
    "SafetyReport",
    "ReportEntry",
    "Count",
    "CounterBlock",
    "PackageCounters",
]
