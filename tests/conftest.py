"""Shared fixtures for the Eidos test suite."""

import pytest

from src.viz.types import Dataset


@pytest.fixture
def xyz_dataset():
    """Three numeric columns plus one categorical column."""
    groups = ("alpha", "beta", "gamma")
    rows = [
        {"a": str(i), "b": str(i * 2), "c": str(10 - i), "group": groups[i % 3]}
        for i in range(10)
    ]
    return Dataset.from_records(rows, ["a", "b", "c", "group"])


@pytest.fixture
def offline(monkeypatch):
    """Force every AI entry point onto its local path."""
    for module in ("src.agent.chat", "src.agent.analysis", "src.agent.viz_generator",
                   "src.api.main"):
        monkeypatch.setattr(f"{module}.is_configured", lambda: False)

