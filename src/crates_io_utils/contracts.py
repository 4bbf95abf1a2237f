# contracts.py
# Data contracts shared by the API call, the workspace and the CLI.
# Library code returns these values; terminating the process is left to the caller.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

# -----------------------------
# Exit codes
# -----------------------------

EXIT_OK = 0
EXIT_ABORTED = 8  # workspace released before finish_ok()
EXIT_FAILED = 12  # fail() was called


# -----------------------------
# Errors
# -----------------------------


class ErrorKind(str, Enum):
    UNEXPECTED_STATUS = "unexpected_status"
    SCHEMA_MISMATCH = "schema_mismatch"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class ApiError:
    """Why a call did not produce the document the caller asked for."""

    kind: ErrorKind
    message: str  # one line, names the URL
    url: str
    status_code: int  # 0 when no response was received


# -----------------------------
# Call result
# -----------------------------


@dataclass(frozen=True)
class ApiCallResult:
    """
    Outcome of one GET against the registry.
    The body and status files are written whether or not `error` is set.
    """

    url: str
    status_code: int
    body: bytes
    output: Path
    expectation: str  # name of the expectation that was applied
    redirects: List[str] = field(default_factory=list)
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_path(self) -> Path:
        return status_path_for(self.output)


def status_path_for(output: Path) -> Path:
    """Companion file holding the textual status code: `<output>.http`."""
    return output.with_name(output.name + ".http")
