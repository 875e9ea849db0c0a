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


"""Core orchestration for appmanifest.

This module provides high-level functions that drive the manifest pipeline
from a file on disk to an effective, per-environment workload:

1. Resolve the application name (``--app`` flag or the workspace summary)
2. Read the manifest text and interpolate ``${NAME}`` references
3. Parse the YAML and decode it into a Workload
4. Apply the environment's overrides

Design Principles:

- Each function has a single, clear responsibility
- Functions return typed objects (Workload, RenderResult) for easy testing
- Error handling uses exceptions; the CLI layer formats them for display
- Progress is reported through the global logger and is silent by default

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from appmanifest.core import load_workload

        workload = load_workload(
            Path("copilot/api/manifest.yml"),
            env_name="prod",
        )

        print(f"Service: {workload.name}")
        print(f"CPU: {workload.config.cpu}")
        ```

"""

from __future__ import annotations

from pathlib import Path

import yaml

from appmanifest.config.loader import load_manifest_document, read_manifest_text
from appmanifest.config.workspace import (
    find_workspace_root,
    manifest_path,
    read_summary,
)
from appmanifest.exceptions import ConfigError
from appmanifest.logging import get_global_logger
from appmanifest.manifest.decode import dump_yaml
from appmanifest.manifest.interpolate import Lookup
from appmanifest.manifest.workload import Workload, unmarshal_workload
from appmanifest.results import RenderResult

__all__ = [
    "find_manifest",
    "list_environments",
    "load_base_workload",
    "load_workload",
    "render_workload",
    "resolve_app_name",
]


def find_manifest(target: str, start_dir: Path | None = None) -> Path:
    """Turn a CLI manifest argument into a manifest path.

    Args:
        target: Path to a manifest file, or the name of a workload in the
            workspace containing ``start_dir``.
        start_dir: Directory to search for a workspace from. Defaults to the
            current working directory.

    Returns:
        Absolute path to the manifest file.

    Raises:
        ConfigError: If ``target`` is neither an existing file nor a workload
            in an enclosing workspace.
    """
    candidate = Path(target)
    if candidate.is_file():
        return candidate.resolve()

    root = find_workspace_root(start_dir if start_dir is not None else Path.cwd())
    if root is None:
        raise ConfigError(
            f"manifest file not found: {target} (and no copilot/ workspace to "
            "look it up in)"
        )
    return manifest_path(root, target)


def resolve_app_name(path: Path, app_name: str | None = None) -> str | None:
    """Return the application name used to interpolate ``path``.

    An explicit ``app_name`` wins. Otherwise the summary of the workspace
    enclosing the manifest is read; outside a workspace the result is None.
    """
    logger = get_global_logger()
    if app_name is not None:
        logger.verbose("WORKSPACE", f"Using application name: {app_name}")
        return app_name

    root = find_workspace_root(path.parent)
    if root is None:
        logger.verbose("WORKSPACE", "No workspace found; application name undefined")
        return None
    name = read_summary(root)
    logger.verbose("WORKSPACE", f"Application: {name}")
    return name


def load_base_workload(
    path: Path,
    *,
    env_name: str | None = None,
    app_name: str | None = None,
    lookup: Lookup | None = None,
) -> Workload:
    """Load a workload manifest without applying environment overrides.

    ``env_name`` still matters: it is the value of COPILOT_ENVIRONMENT_NAME
    during interpolation.

    Raises:
        ConfigError: If the file or workspace cannot be read.
        InterpolationError: If a ${NAME} reference cannot be substituted.
        DecodeError: If the document does not fit the workload schema.
    """
    logger = get_global_logger()
    app_name = resolve_app_name(path, app_name)
    data = load_manifest_document(
        path, app_name=app_name, env_name=env_name, lookup=lookup
    )
    workload = unmarshal_workload(data)
    logger.verbose(
        "MANIFEST",
        f"Decoded workload {workload.name!r} ({workload.type or 'no type'}) with "
        f"{len(workload.environments)} environment override(s)",
    )
    return workload


def load_workload(
    path: Path,
    *,
    env_name: str | None = None,
    app_name: str | None = None,
    lookup: Lookup | None = None,
) -> Workload:
    """Load a workload manifest and apply one environment's overrides.

    Args:
        path: Manifest file.
        env_name: Environment to resolve for. None returns the base
            configuration.
        app_name: Application name. Defaults to the workspace summary.
        lookup: External variable source. Defaults to the process environment.

    Returns:
        The effective Workload.

    Raises:
        ConfigError: If the file or workspace cannot be read.
        InterpolationError: If a ${NAME} reference cannot be substituted.
        DecodeError: If the document does not fit the workload schema.
        MergeConflictError: If the environment's overrides cannot be merged.

    Example:
        Load the test environment of a service:
            ```python
            workload = load_workload(Path("copilot/api/manifest.yml"), env_name="test")
            print(workload.config.desired_count())
            ```
    """
    logger = get_global_logger()
    workload = load_base_workload(
        path, env_name=env_name, app_name=app_name, lookup=lookup
    )
    if env_name is None:
        return workload

    if env_name in workload.environments:
        logger.verbose("OVERLAY", f"Applying overrides for environment {env_name!r}")
    else:
        logger.verbose(
            "OVERLAY", f"No overrides for environment {env_name!r}; using base"
        )
    effective = workload.apply_env(env_name)
    logger.debug("OVERLAY", f"Effective cpu={effective.config.cpu} memory={effective.config.memory}")
    return effective


def render_workload(
    path: Path,
    *,
    env_name: str | None = None,
    app_name: str | None = None,
    lookup: Lookup | None = None,
) -> RenderResult:
    """Load a workload for one environment and serialize it as YAML.

    This is the main entry point for the 'appmanifest show' command.

    Returns:
        RenderResult with the effective workload and its YAML text.

    Raises:
        ManifestError: Any error raised by load_workload().
    """
    logger = get_global_logger()
    app_name = resolve_app_name(path, app_name)
    workload = load_workload(path, env_name=env_name, app_name=app_name, lookup=lookup)

    text = dump_yaml(workload)
    logger.debug("MANIFEST", f"Rendered {len(text.splitlines())} line(s) of YAML")

    return RenderResult(
        workload=workload,
        environment=env_name,
        application=app_name,
        manifest_path=path,
        yaml=text,
    )


def list_environments(path: Path) -> list[str]:
    """Return the environment names a manifest has overrides for.

    The raw text is parsed without interpolation, so references that only
    resolve for a particular environment do not get in the way.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    text = read_manifest_text(path)
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise ConfigError(f"invalid YAML in manifest {path}: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"top-level YAML must be a mapping: {path}")

    environments = data.get("environments") or {}
    if not isinstance(environments, dict):
        raise ConfigError(f"'environments' must be a mapping: {path}")
    return sorted(str(name) for name in environments)
