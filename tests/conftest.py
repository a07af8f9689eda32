"""Shared test configuration and fixtures."""
import os

os.environ.setdefault("CAMPUSHUB_LOG_FILE", "false")

import pytest

from campushub.allocator import Allocator
from campushub.store import JsonCollection
from tests.helpers import PROJECTS, USERS, write_json


@pytest.fixture
def data_dir(tmp_path):
    write_json(tmp_path / "users.json", USERS)
    write_json(tmp_path / "projects.json", PROJECTS)
    write_json(tmp_path / "assignments.json", [])
    return tmp_path


@pytest.fixture
def allocator(data_dir):
    counter = iter(range(1, 1000))
    return Allocator(
        users=JsonCollection(data_dir / "users.json"),
        projects=JsonCollection(data_dir / "projects.json"),
        assignments=JsonCollection(data_dir / "assignments.json"),
        id_factory=lambda: f"asgn_{next(counter)}",
    )
