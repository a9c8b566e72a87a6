"""RUSTC_WRAPPER entry point: ``python -m geiger_audit.build.wrapper RUSTC ARGS...``.

Reports the invocation to the collector server named by the
GEIGER_AUDIT_COLLECTOR environment variable, then runs the real compiler and
exits with its status. Without that variable the compiler is run unobserved.
"""

from __future__ import annotations

import os
import subprocess
import sys
from multiprocessing.connection import Client
from typing import Optional

from .collector import COLLECTOR_ENV, parse_endpoint

# Exit status when the collector rejects an invocation (rustc uses 101 for ICEs)
REJECTED_EXIT_CODE = 101


def report_invocation(endpoint: str, args: list[str], cwd: str) -> Optional[str]:
    """Send one invocation to the collector. Returns the rejection reason, if any."""
    address, authkey = parse_endpoint(endpoint)
    with Client(address, authkey=authkey) as conn:
        conn.send({"args": args, "cwd": cwd})
        reply = conn.recv()
    if reply.get("ok"):
        return None
    return str(reply.get("error", "invocation rejected"))


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        sys.stderr.write("usage: python -m geiger_audit.build.wrapper RUSTC [ARGS...]\n")
        return 2

    rustc, args = argv[0], argv[1:]
    endpoint = os.environ.get(COLLECTOR_ENV)
    if endpoint:
        try:
            error = report_invocation(endpoint, args, os.getcwd())
        except (OSError, EOFError, ValueError) as e:
            error = f"cannot reach invocation collector: {e}"
        if error is not None:
            sys.stderr.write(f"geiger-audit: {error}\n")
            return REJECTED_EXIT_CODE

    return subprocess.call([rustc, *args])


if __name__ == "__main__":
    sys.exit(main())
