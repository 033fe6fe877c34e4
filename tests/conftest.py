"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Callable

import pytest

from builders import enum, function, interface, module, param, prop, variable
from semver_impact.declarations import ModuleAnalysis


@pytest.fixture
def user_api() -> ModuleAnalysis:
    """A small module touching every node shape the differ handles."""
    return module(
        function("getUser", [param("id", "string"), param("options", "GetOptions", optional=True)], "User"),
        interface(
            "User",
            prop("id"),
            prop("email"),
            prop("nickname", optional=True),
            prop("createdAt", "Date", readonly=True),
        ),
        enum("Role", Admin="'admin'", Member="'member'"),
        variable("VERSION", "string"),
    )


@pytest.fixture
def write_module(tmp_path: Path) -> Callable[[str, ModuleAnalysis], Path]:
    """Serialize a ModuleAnalysis to a JSON file under tmp_path."""

    def _write(name: str, analysis: ModuleAnalysis) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(analysis.to_dict(), indent=2), encoding="utf-8")
        return path

    return _write
