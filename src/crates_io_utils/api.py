"""
One GET against the crates.io API, checked against an expected JSON shape.

`CratesIoClient.call` returns an ApiCallResult and never terminates;
`call_or_fail` is the fail-fast form for scripts: on any error it dumps the
body to stderr and calls fail(), exiting with status 12.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from crates_io_utils.config import Settings, load_settings
from crates_io_utils.contracts import ApiCallResult, ApiError, ErrorKind, status_path_for
from crates_io_utils.diagnostics import dump_body, fail
from crates_io_utils.expectations import ERRORS_ENVELOPE, Expectation, as_expectation

log = logging.getLogger(__name__)

ExpectLike = Union[str, Expectation]
PathLike = Union[str, Path]


class CratesIoClient:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self._client = httpx.Client(
            follow_redirects=True,
            headers={
                "User-Agent": self.settings.user_agent,
                "Accept": "application/json",
            },
            transport=transport,
        )

    def url_for(self, endpoint: str) -> str:
        return f"{self.settings.base_url}/{endpoint.lstrip('/')}"

    def call(self, endpoint: str, expect: ExpectLike, output: PathLike) -> ApiCallResult:
        """
        GET `endpoint`, store body in `output` and status in `output`.http, validate.

        200 -> `expect` must hold
        404 -> the body must be the registry's errors envelope
        else -> UNEXPECTED_STATUS
        """
        expectation = as_expectation(expect)
        output = Path(output)
        url = self.url_for(endpoint)

        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            log.warning("GET %s failed: %s", url, e)
            _write_outputs(output, b"", 0)
            return ApiCallResult(
                url=url,
                status_code=0,
                body=b"",
                output=output,
                expectation=expectation.name,
                error=ApiError(
                    kind=ErrorKind.TRANSPORT,
                    message=f"request to {url} failed: {e}",
                    url=url,
                    status_code=0,
                ),
            )

        body = response.content
        status = response.status_code
        # hops after the requested URL, ending with the URL that answered
        redirects = [str(r.url) for r in response.history[1:]] + [str(response.url)] if response.history else []
        _write_outputs(output, body, status)

        if redirects:
            log.info("GET %s redirected: %s", url, " -> ".join(redirects))
        log.info("GET %s -> %d (%d bytes)", url, status, len(body))

        error: Optional[ApiError] = None
        if status == 200:
            active = expectation
        elif status == 404:
            active = ERRORS_ENVELOPE
        else:
            active = expectation
            error = ApiError(
                kind=ErrorKind.UNEXPECTED_STATUS,
                message=f"unexpected HTTP response status code {status} from {url}",
                url=url,
                status_code=status,
            )

        if error is None and not _holds(active, body):
            error = ApiError(
                kind=ErrorKind.SCHEMA_MISMATCH,
                message=f"bad JSON data from {url} (expected {active.name})",
                url=url,
                status_code=status,
            )

        return ApiCallResult(
            url=url,
            status_code=status,
            body=body,
            output=output,
            expectation=active.name,
            redirects=redirects,
            error=error,
        )

    def call_or_fail(self, endpoint: str, expect: ExpectLike, output: PathLike) -> ApiCallResult:
        result = self.call(endpoint, expect, output)
        if result.error is not None:
            dump_body(result.body)
            fail(result.error.message)
        return result

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CratesIoClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def crates_io_api_call(
    endpoint: str,
    expect: ExpectLike,
    output: PathLike,
    settings: Settings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> ApiCallResult:
    """One-shot `call_or_fail` with a throwaway client."""
    with CratesIoClient(settings, transport=transport) as client:
        return client.call_or_fail(endpoint, expect, output)


def _write_outputs(output: Path, body: bytes, status: int) -> None:
    output.write_bytes(body)
    status_path_for(output).write_text(f"{status:03d}", encoding="utf-8")


def _holds(expectation: Expectation, body: bytes) -> bool:
    try:
        document: Any = json.loads(body)
    except ValueError as e:
        log.debug("body is not JSON: %s", e)
        return False
    return expectation.check(document)
