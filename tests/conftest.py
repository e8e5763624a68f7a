"""Shared pytest fixtures for the bashtyped test suite."""

from __future__ import annotations

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def script(tmp_path):
    """Write a shell script into a temp dir and return its path."""

    def _write(text: str, name: str = "script.sh"):
        path = tmp_path / name
        path.write_text(text)
        return path

    return _write
