# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Workspace discovery.

A workspace is a project directory containing a ``copilot/`` folder::

    my-project/
      copilot/
        .workspace            # application: shop
        api/
          manifest.yml
        worker/
          manifest.yml

The ``.workspace`` summary names the application, which becomes the value
of COPILOT_APPLICATION_NAME when manifests are interpolated.

Example:
    ```python
    from pathlib import Path
    from appmanifest.config.workspace import find_workspace_root, read_summary

    root = find_workspace_root(Path.cwd())
    if root is not None:
        print(read_summary(root))  # "shop"
    ```
"""

from __future__ import annotations

from pathlib import Path

import yaml

from appmanifest.exceptions import ConfigError
from appmanifest.logging import get_global_logger

__all__ = [
    "MANIFEST_FILE_NAME",
    "SUMMARY_FILE_NAME",
    "WORKSPACE_DIR_NAME",
    "find_workspace_root",
    "list_workloads",
    "manifest_path",
    "read_summary",
]

WORKSPACE_DIR_NAME = "copilot"
SUMMARY_FILE_NAME = ".workspace"
MANIFEST_FILE_NAME = "manifest.yml"


def find_workspace_root(start_dir: Path) -> Path | None:
    """Walk upward from ``start_dir`` looking for ``copilot/.workspace``.

    Returns:
        The directory containing ``copilot/``, or None if not found.
    """
    logger = get_global_logger()
    start_dir = start_dir.resolve()
    for parent in [start_dir] + list(start_dir.parents):
        candidate = parent / WORKSPACE_DIR_NAME / SUMMARY_FILE_NAME
        if candidate.is_file():
            logger.verbose("WORKSPACE", f"Found workspace: {parent}")
            return parent
    logger.debug("WORKSPACE", f"No workspace above {start_dir}")
    return None


def read_summary(root: Path) -> str:
    """Return the application name recorded in the workspace summary.

    Raises:
        ConfigError: If the summary is missing, unparsable, or has no
            ``application`` key.
    """
    summary_path = root / WORKSPACE_DIR_NAME / SUMMARY_FILE_NAME
    try:
        text = summary_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigError(f"cannot read workspace summary {summary_path}: {err}") from err
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise ConfigError(f"invalid YAML in workspace summary {summary_path}: {err}") from err

    application = data.get("application") if isinstance(data, dict) else None
    if not isinstance(application, str) or not application.strip():
        raise ConfigError(f"workspace summary {summary_path} does not name an application")
    return application.strip()


def manifest_path(root: Path, name: str) -> Path:
    """Return the manifest path of workload ``name`` in the workspace.

    Raises:
        ConfigError: If the workload has no manifest.
    """
    path = root / WORKSPACE_DIR_NAME / name / MANIFEST_FILE_NAME
    if not path.is_file():
        raise ConfigError(f"manifest for workload {name!r} not found: {path}")
    return path


def list_workloads(root: Path) -> list[str]:
    """Return the names of all workloads in the workspace, sorted."""
    copilot_dir = root / WORKSPACE_DIR_NAME
    if not copilot_dir.is_dir():
        return []
    return sorted(
        entry.name
        for entry in copilot_dir.iterdir()
        if entry.is_dir() and (entry / MANIFEST_FILE_NAME).is_file()
    )
