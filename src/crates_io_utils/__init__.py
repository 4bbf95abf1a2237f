"""Fail-fast helpers for querying the crates.io API from maintenance scripts."""

from crates_io_utils.api import CratesIoClient, crates_io_api_call
from crates_io_utils.contracts import (
    EXIT_ABORTED,
    EXIT_FAILED,
    EXIT_OK,
    ApiCallResult,
    ApiError,
    ErrorKind,
)
from crates_io_utils.diagnostics import fail, visible_escapes
from crates_io_utils.expectations import ERRORS_ENVELOPE, Expectation, key_path, matches_schema
from crates_io_utils.workspace import ScopedWorkspace, run_in_workspace

__all__ = [
    "ApiCallResult",
    "ApiError",
    "CratesIoClient",
    "ERRORS_ENVELOPE",
    "EXIT_ABORTED",
    "EXIT_FAILED",
    "EXIT_OK",
    "ErrorKind",
    "Expectation",
    "ScopedWorkspace",
    "crates_io_api_call",
    "fail",
    "key_path",
    "matches_schema",
    "run_in_workspace",
    "visible_escapes",
]
