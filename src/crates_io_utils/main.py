from __future__ import annotations

import argparse
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import NoReturn, Sequence

from crates_io_utils.api import CratesIoClient
from crates_io_utils.config import Settings, load_settings, validate_base_url
from crates_io_utils.expectations import Expectation, key_path
from crates_io_utils.logging_config import setup_logging
from crates_io_utils.workspace import ScopedWorkspace, run_in_workspace

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="crates-io-api",
        description="Query crates.io API endpoints and check the shape of the JSON returned.",
        epilog="exit status: 0 ok, 8 aborted before completion, 12 unexpected status or bad JSON",
    )
    p.add_argument("endpoints", nargs="+", metavar="ENDPOINT", help="path below the API root, e.g. v1/crates/serde")
    p.add_argument("--expect", default=".", help="jq-style path that must be present on HTTP 200 (default: .)")
    p.add_argument("--output-dir", type=Path, default=None, help="keep responses here instead of the temporary workspace")
    p.add_argument("--base-url", default=None, help="API root (default: CRATES_IO_URL_BASE or https://crates.io/api)")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    p.add_argument("--log-file", type=Path, default=None, help="also write log records here (default: CRATES_IO_LOG_FILE)")
    return p


def output_name(endpoint: str) -> str:
    stem = re.sub(r"[^A-Za-z0-9._-]+", "_", endpoint.strip("/")) or "root"
    return f"{stem}.json"


def output_names(endpoints: Sequence[str]) -> list[str]:
    """File names for `endpoints`, in order; two endpoints sharing a name is a ValueError."""
    owners: dict[str, str] = {}
    for endpoint in endpoints:
        name = output_name(endpoint)
        if name in owners:
            raise ValueError(f"endpoints {owners[name]!r} and {endpoint!r} would both be saved as {name}")
        owners[name] = endpoint
    return list(owners)


def fetch_all(ws: ScopedWorkspace, endpoints: Sequence[str], expect: Expectation, settings: Settings, output_dir: Path | None) -> None:
    out_dir = output_dir or ws.path
    if out_dir is None:
        raise RuntimeError("workspace is not set up")
    out_dir.mkdir(parents=True, exist_ok=True)

    with CratesIoClient(settings) as client:
        for endpoint, name in zip(endpoints, output_names(endpoints)):
            result = client.call_or_fail(endpoint, expect, out_dir / name)
            print(f"{result.status_code} {result.url}", flush=True)

    ws.finish_ok()


def main(argv: Sequence[str] | None = None) -> NoReturn:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
        if args.base_url:
            settings = replace(settings, base_url=validate_base_url(args.base_url))
        expect = key_path(args.expect)
        output_names(args.endpoints)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(args.log_level or settings.log_level, args.log_file or settings.log_file)

    log.debug("base url: %s", settings.base_url)
    run_in_workspace(fetch_all, args.endpoints, expect, settings, args.output_dir)


if __name__ == "__main__":
    main()
