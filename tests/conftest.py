from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings

from perfgate.core.context import RunContext

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

settings.register_profile("perfgate", deadline=None, max_examples=100)
settings.load_profile("perfgate")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture
def ctx(tmp_path: Path) -> RunContext:
    return RunContext.from_args("pytest-run", "test", work_dir=tmp_path, environ={})
