"""Shared fixtures for integration tests."""

import json

import pytest

from tests.helpers.synthetic_data import build_clinic_snapshot


def pytest_collection_modifyitems(items):
    for item in items:
        if item.path.parent.name == "integration":
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def snapshot_file(tmp_path):
    """Clinic snapshot written as plain JSON."""
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps(build_clinic_snapshot().model_dump(mode="json"), ensure_ascii=False),
        encoding="utf-8",
    )
    return path
