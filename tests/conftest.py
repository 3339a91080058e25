"""Shared pytest fixtures for rulexpr tests."""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def rules_toml(tmp_path: Path) -> Callable[[str], Path]:
    """Return a factory that writes a TOML config file and returns its path."""

    def _write(body: str, name: str = "rulexpr.toml") -> Path:
        path = tmp_path / name
        path.write_text(body, encoding="utf-8")
        return path

    return _write
