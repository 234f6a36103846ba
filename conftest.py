"""Shared pytest fixtures: an isolated SQLite store per test."""
from datetime import date

import pytest

from db import operations as db_ops
from workspace.controller import Workspace

TODAY = date(2024, 3, 15)


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    """Point the persistence gateway at a fresh database file."""
    path = tmp_path / "readspace-test.db"
    monkeypatch.setattr(db_ops, "DB_PATH", path)
    db_ops.init_database()
    return path


@pytest.fixture
def workspace():
    return Workspace(today=lambda: TODAY)


@pytest.fixture
def library(workspace):
    """Workspace with three uploaded documents."""
    for name in ("a.md", "b.md", "c.md"):
        workspace.upload(name, f"# {name}\n\nBody of {name}.")
    return workspace
