"""
Scoped temporary workspace.

A workspace is a uniquely named temporary directory owned by one script run.
It is removed when the owning scope exits, whichever way it exits, and it
remembers whether the script reached its intended end (`finish_ok`) so the
outermost caller can pick the exit code:

- 0  finish_ok() was called
- 8  the scope ended without finish_ok()
- 12 fail() was called, or SystemExit carried a message (these win over
     the workspace's own code)
"""

from __future__ import annotations

import logging
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional

from crates_io_utils.contracts import EXIT_ABORTED, EXIT_FAILED, EXIT_OK

log = logging.getLogger(__name__)


class ScopedWorkspace:
    def __init__(self, prefix: str = "crates-io-utils.", parent: Path | None = None) -> None:
        self.prefix = prefix
        self.parent = parent
        self.path: Optional[Path] = None
        self.exit_intent = EXIT_ABORTED
        self._released = False

    def setup(self) -> Path:
        if self.path is not None:
            raise RuntimeError(f"workspace already set up at {self.path}")
        self.path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.parent))
        log.debug("workspace created: %s", self.path)
        return self.path

    def finish_ok(self) -> None:
        self.exit_intent = EXIT_OK

    def cleanup(self) -> None:
        """Remove the directory. Runs once; later calls are no-ops."""
        if self._released:
            return
        self._released = True
        if self.path is None:
            return
        # cleanup must not abort half way, so removal errors are ignored
        shutil.rmtree(self.path, ignore_errors=True)
        log.debug("workspace removed: %s (exit intent %d)", self.path, self.exit_intent)

    def exit_code(self, exc: BaseException | None = None) -> int:
        """Exit status for the process given the exception unwinding the scope, if any."""
        if isinstance(exc, SystemExit):
            if isinstance(exc.code, int) and exc.code != 0:
                return exc.code
            # sys.exit("message") is a failure, whatever was finished before it
            if exc.code is not None and not isinstance(exc.code, int):
                return EXIT_FAILED
        if exc is not None and not isinstance(exc, SystemExit):
            return EXIT_ABORTED
        return self.exit_intent

    def __enter__(self) -> "ScopedWorkspace":
        self.setup()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


def run_in_workspace(body: Callable[..., Any], *args: Any, prefix: str = "crates-io-utils.") -> NoReturn:
    """
    Run `body(workspace, *args)` inside a fresh workspace, then exit the process.

    This is the script-level convention: the workspace is gone before
    SystemExit is raised, on every path out of `body`.
    """
    ws = ScopedWorkspace(prefix=prefix)
    try:
        with ws:
            body(ws, *args)
    except SystemExit as exc:
        if exc.code is not None and not isinstance(exc.code, int):
            print(exc.code, file=sys.stderr, flush=True)
        raise SystemExit(ws.exit_code(exc)) from None
    except KeyboardInterrupt as exc:
        log.warning("interrupted")
        raise SystemExit(ws.exit_code(exc)) from None
    except Exception as exc:
        log.exception("aborted: %s", exc)
        raise SystemExit(ws.exit_code(exc)) from None
    raise SystemExit(ws.exit_code())
