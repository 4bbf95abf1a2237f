from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from crates_io_utils.api import CratesIoClient
from crates_io_utils.config import Settings

BASE_URL = "https://crates.io/api"

_ENV_VARS = ("CRATES_IO_URL_BASE", "CRATES_IO_USER_AGENT", "CRATES_IO_LOG_LEVEL", "CRATES_IO_LOG_FILE")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # setenv first so that the teardown also removes values loaded from a .env file
    for name in _ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def json_response(status: int, payload: Any) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload).encode())


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url=BASE_URL, user_agent="crates-io-utils tests")


@pytest.fixture
def make_client(settings) -> Callable[..., CratesIoClient]:
    clients: list[CratesIoClient] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> CratesIoClient:
        client = CratesIoClient(settings, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
