"""Build introspection: which source files does a real build compile?"""

from .collector import CollectorServer, InvocationCollector, is_compile_invocation
from .dep_info import parse_dep_info, parse_dep_info_text
from .introspector import collect_dep_info_paths, resolve_build_used_files
from .used_set import BuildUsedSet

__all__ = [
    "BuildUsedSet",
    "CollectorServer",
    "InvocationCollector",
    "collect_dep_info_paths",
    "is_compile_invocation",
    "parse_dep_info",
    "parse_dep_info_text",
    "resolve_build_used_files",
]
