"""Shared interception state for compiler invocations observed during a build.

Cargo runs every rustc invocation through the wrapper (see ``wrapper.py``).
Each wrapper process reports its arguments to one ``CollectorServer`` thread,
which records them into an ``InvocationCollector``. The collector's lock only
covers set insertion; the compiler itself runs in the wrapper process.
"""

from __future__ import annotations

import secrets
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from multiprocessing.connection import AuthenticationError, Client, Listener
from pathlib import Path
from typing import Any, Optional

from ..exceptions import (
    BuildIntrospectionError,
    CanonicalizeError,
    CollectorStateError,
    MalformedInvocationError,
)
from ..logging_config import get_logger

logger = get_logger(__name__)

COLLECTOR_ENV = "GEIGER_AUDIT_COLLECTOR"
OUT_DIR_FLAG = "--out-dir"


def is_compile_invocation(args: Sequence[str]) -> bool:
    """False for cargo's probes (``rustc -vV``, ``rustc --print=cfg`` ...)."""
    if "--crate-name" not in args:
        return False
    return not any(arg == "--print" or arg.startswith("--print=") for arg in args)


def out_dir_of(args: Sequence[str]) -> Path:
    """Return the value of ``--out-dir``.

    Raises:
        MalformedInvocationError: The flag or its value is missing
    """
    try:
        index = list(args).index(OUT_DIR_FLAG)
    except ValueError:
        raise MalformedInvocationError(args, f"{OUT_DIR_FLAG} key")
    if index + 1 >= len(args):
        raise MalformedInvocationError(args, f"{OUT_DIR_FLAG} value")
    return Path(args[index + 1])


def _canonicalize(cwd: Path, arg: str) -> Path:
    raw_path = cwd / arg
    try:
        return raw_path.resolve(strict=True)
    except OSError as e:
        raise CanonicalizeError(raw_path, str(e))


class InvocationCollector:
    """Entry source files and output directories of every compilation.

    An exception escaping the critical section poisons the collector, after
    which every access raises CollectorStateError. The first error seen while
    recording is kept so the build driver can report it instead of cargo's
    generic failure.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rs_files: set[Path] = set()
        self._out_dirs: set[Path] = set()
        self._poisoned: Optional[str] = None
        self._first_error: Optional[BuildIntrospectionError] = None

    @contextmanager
    def _critical(self) -> Iterator[None]:
        with self._lock:
            if self._poisoned is not None:
                raise CollectorStateError(self._poisoned)
            try:
                yield
            except BaseException as e:
                self._poisoned = f"{type(e).__name__}: {e}"
                raise

    @property
    def poisoned(self) -> bool:
        return self._poisoned is not None

    @property
    def first_error(self) -> Optional[BuildIntrospectionError]:
        with self._lock:
            return self._first_error

    def _remember(self, error: BuildIntrospectionError) -> None:
        with self._lock:
            if self._first_error is None:
                self._first_error = error

    def record_invocation(self, args: Sequence[str], cwd: Path) -> bool:
        """Record one compiler invocation.

        Returns False for invocations that are not compilations.

        Raises:
            MalformedInvocationError: A compilation without ``--out-dir``
            CanonicalizeError: A ``.rs`` argument does not exist
            CollectorStateError: The collector is poisoned
        """
        if not is_compile_invocation(args):
            return False
        try:
            out_dir = cwd / out_dir_of(args)
            rs_files = [_canonicalize(cwd, arg) for arg in args if arg.lower().endswith(".rs")]
            with self._critical():
                self._rs_files.update(rs_files)
                self._out_dirs.add(out_dir)
        except BuildIntrospectionError as e:
            self._remember(e)
            raise
        logger.debug("Recorded compilation: %d source file(s), out dir %s", len(rs_files), out_dir)
        return True

    def snapshot(self) -> tuple[frozenset[Path], frozenset[Path]]:
        """Return (entry source files, output directories) recorded so far."""
        with self._critical():
            return frozenset(self._rs_files), frozenset(self._out_dirs)


class CollectorServer:
    """Serve an InvocationCollector to wrapper processes over a local socket.

    Use as a context manager; ``env`` holds the variables a wrapper needs to
    find the server.
    """

    def __init__(self, collector: InvocationCollector, backlog: int = 64):
        self.collector = collector
        self._authkey = secrets.token_bytes(32)
        self._listener = Listener(("127.0.0.1", 0), backlog=backlog, authkey=self._authkey)
        self._closing = False
        self._thread = threading.Thread(target=self._serve, name="geiger-collector", daemon=True)

    @property
    def address(self) -> tuple[str, int]:
        return self._listener.address

    @property
    def env(self) -> dict[str, str]:
        host, port = self.address
        return {COLLECTOR_ENV: f"{host}:{port}:{self._authkey.hex()}"}

    def __enter__(self) -> CollectorServer:
        self._thread.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        if self._thread.is_alive():
            # Wake the blocking accept() so the thread can observe _closing
            try:
                Client(self.address, authkey=self._authkey).close()
            except OSError:
                pass
            self._thread.join(timeout=5)
        self._listener.close()

    def _serve(self) -> None:
        while True:
            try:
                conn = self._listener.accept()
            except (OSError, AuthenticationError) as e:
                if self._closing:
                    return
                logger.warning("Rejected collector connection: %s", e)
                continue
            with conn:
                if self._closing:
                    return
                try:
                    self._handle(conn)
                except OSError as e:
                    logger.warning("Failed to answer compiler wrapper: %s", e)

    def _handle(self, conn: Any) -> None:
        try:
            message = conn.recv()
        except (EOFError, OSError) as e:
            logger.warning("Lost connection to compiler wrapper: %s", e)
            return
        try:
            args, cwd = list(message["args"]), Path(message["cwd"])
        except (KeyError, TypeError) as e:
            conn.send({"ok": False, "error": f"malformed collector message: {e!r}"})
            return
        try:
            self.collector.record_invocation(args, cwd)
        except BuildIntrospectionError as e:
            logger.debug("Rejected invocation: %s", e)
            conn.send({"ok": False, "error": str(e)})
            return
        conn.send({"ok": True})


def parse_endpoint(value: str) -> tuple[tuple[str, int], bytes]:
    """Split a COLLECTOR_ENV value into (address, authkey)."""
    host, port, key = value.rsplit(":", 2)
    return (host, int(port)), bytes.fromhex(key)
