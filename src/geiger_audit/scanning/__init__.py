"""Source scanning: count safe and unsafe items in Rust files and packages."""

from .counters import CATEGORIES, Count, CounterBlock, PackageCounters
from .files import find_rs_files_in_dir
from .packages import GeigerContext, find_unsafe_in_packages, scan_package
from .safety_scanner import NodeKind, count_unsafe, find_unsafe_in_file
from .treesitter_parser import RustParser

__all__ = [
    "CATEGORIES",
    "Count",
    "CounterBlock",
    "GeigerContext",
    "NodeKind",
    "PackageCounters",
    "RustParser",
    "count_unsafe",
    "find_rs_files_in_dir",
    "find_unsafe_in_file",
    "find_unsafe_in_packages",
    "scan_package",
]
