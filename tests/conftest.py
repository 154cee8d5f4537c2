from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

ROOT = Path(__file__).resolve().parents[1]

settings.register_profile("releasectl", deadline=None, max_examples=100)
settings.load_profile("releasectl")


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
def config_root(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "releasectl.yaml").write_text(
        "version: 1.4.0\n"
        "branch:\n"
        "  max_segments: 2\n"
        "  forbidden: [latest]\n"
        "build:\n"
        "  tool: dotnet\n"
        "  projects: [src/App/App.csproj]\n",
        encoding="utf-8",
    )
    return repo
