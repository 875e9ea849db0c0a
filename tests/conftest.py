"""
Pytest configuration and shared fixtures for appmanifest tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from appmanifest.logging import SilentLogger, set_global_logger


@pytest.fixture(autouse=True)
def silent_global_logger():
    """Reset the global logger so CLI tests do not leak verbosity."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def sample_manifest_data() -> dict[str, Any]:
    """
    Provide sample workload manifest data.

    Returns a complete service manifest with two environment overrides.
    """
    return {
        "name": "api",
        "type": "Load Balanced Web Service",
        "image": {"build": "api/Dockerfile", "port": 8080},
        "http": {"path": "/", "healthcheck": "/_health"},
        "cpu": 256,
        "memory": 512,
        "count": 1,
        "variables": {"LOG_LEVEL": "info"},
        "environments": {
            "test": {"count": 2},
            "prod": {
                "cpu": 1024,
                "count": {"range": "2-10", "cpu_percentage": 70},
                "variables": {"LOG_LEVEL": "warn"},
            },
        },
    }


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("manifest.yml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)
        return path

    return _create


@pytest.fixture
def create_workspace(tmp_test_dir: Path):
    """
    Factory fixture for creating a copilot/ workspace.

    Usage:
        root = create_workspace("shop", {"api": "name: api\\n..."})
    """

    def _create(application: str, manifests: dict[str, str]) -> Path:
        copilot_dir = tmp_test_dir / "copilot"
        copilot_dir.mkdir(parents=True, exist_ok=True)
        (copilot_dir / ".workspace").write_text(
            f"application: {application}\n", encoding="utf-8"
        )
        for name, text in manifests.items():
            workload_dir = copilot_dir / name
            workload_dir.mkdir(exist_ok=True)
            (workload_dir / "manifest.yml").write_text(text, encoding="utf-8")
        return tmp_test_dir

    return _create
