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

"""Workload manifest validation.

This module checks a manifest against the schema rules that decoding alone
cannot express, without touching any deployment target. It is useful for
quick feedback while editing a manifest and in CI/CD pipelines.

Validation walks the effective workload depth-first and calls validate() on
every section type that declares ``validates = True``. Each broken rule is
reported once, prefixed with the path of its section.

Validation Checks:

- The manifest can be read, interpolated and parsed
- Values have the shapes the schema declares
- name is set and type is supported
- image has exactly one of build or location
- cpu and memory are not negative
- count ranges have min <= max; spot excludes autoscaling
- health check thresholds are positive
- Every environment's overrides merge cleanly

Example:
    Validate a manifest and handle results:
        ```python
        from pathlib import Path
        from appmanifest.validation import validate_manifest

        result = validate_manifest(Path("copilot/api/manifest.yml"), env_name="prod")
        if result.status == "valid":
            print("Manifest is valid")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```

"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from appmanifest.core import list_environments, load_base_workload, resolve_app_name
from appmanifest.exceptions import (
    ManifestError,
    MergeConflictError,
    UndefinedVariableError,
    ValidationError,
)
from appmanifest.logging import get_global_logger
from appmanifest.manifest.interpolate import ENVIRONMENT_NAME_VAR, Lookup
from appmanifest.manifest.record import Record, record_fields
from appmanifest.manifest.union import SumType
from appmanifest.manifest.workload import Workload
from appmanifest.results import ValidationResult

__all__ = ["collect_errors", "validate_manifest", "validate_workload"]


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def collect_errors(value: Any, path: str = "") -> list[str]:
    """Walk a decoded value and run every participating validate() hook.

    Args:
        value: A record, sum type, collection or scalar.
        path: Dotted path of ``value`` used to prefix messages.

    Returns:
        Error messages in depth-first order.
    """
    errors: list[str] = []
    _walk(value, path, errors)
    return errors


def _walk(value: Any, path: str, errors: list[str]) -> None:
    if isinstance(value, SumType):
        _walk(value.value(), path, errors)
    elif isinstance(value, Record):
        if type(value).validates:
            try:
                value.validate()
            except ValidationError as err:
                errors.append(f"{path}: {err}" if path else str(err))
        for spec in record_fields(type(value)):
            child_path = path if spec.inline else _join(path, spec.key)
            _walk(getattr(value, spec.name), child_path, errors)
    elif isinstance(value, dict):
        for key, item in value.items():
            _walk(item, _join(path, str(key)), errors)
    elif isinstance(value, list):
        for idx, item in enumerate(value):
            _walk(item, f"{path}[{idx}]", errors)


def _validate_effective(workload: Workload, prefix: str) -> list[str]:
    errors: list[str] = []
    try:
        workload.validate()
    except ValidationError as err:
        errors.append(f"{prefix}: {err}" if prefix else str(err))
    errors.extend(collect_errors(workload.config, prefix))
    return errors


def _check_target(workload: Workload, target: str | None, prefix: str) -> list[str]:
    try:
        effective = workload.apply_env(target)
    except MergeConflictError as err:
        return [str(err)]
    found = _validate_effective(effective, prefix)
    get_global_logger().verbose(
        "VALIDATE",
        f"{'base' if target is None else target}: {len(found)} error(s)",
    )
    return found


def _load_failure(
    path: Path, env_name: str | None, err: ManifestError
) -> ValidationResult:
    return ValidationResult(
        status="invalid",
        errors=[str(err)],
        warnings=[],
        environment=env_name,
        manifest_path=str(path),
    )


def validate_workload(
    workload: Workload,
    env_name: str | None = None,
    *,
    manifest_path: Path | None = None,
) -> ValidationResult:
    """Validate a decoded workload.

    With an environment name the workload is resolved for that environment
    and the effective configuration is checked. Without one the base
    configuration is checked, and then every environment is resolved and
    checked in turn.

    Args:
        workload: Workload as decoded, before any overrides are applied.
        env_name: Environment to validate, or None for all of them.
        manifest_path: File the workload came from, for reporting.

    Returns:
        ValidationResult with status "valid" or "invalid".
    """
    errors: list[str] = []
    warnings: list[str] = []

    if env_name is not None:
        if env_name not in workload.environments:
            warnings.append(
                f"environment {env_name!r} has no overrides; "
                "the base configuration is used"
            )
        targets = [env_name]
    else:
        targets = [None] + sorted(workload.environments)

    for target in targets:
        prefix = "" if target is None or target == env_name else f"environments.{target}"
        errors.extend(_check_target(workload, target, prefix))

    return ValidationResult(
        status="invalid" if errors else "valid",
        errors=errors,
        warnings=warnings,
        environment=env_name,
        manifest_path=str(manifest_path) if manifest_path is not None else None,
    )


def validate_manifest(
    path: Path,
    *,
    env_name: str | None = None,
    app_name: str | None = None,
    lookup: Lookup | None = None,
) -> ValidationResult:
    """Validate a manifest file without deploying anything.

    Loading failures (missing file, YAML syntax, interpolation and decode
    errors) are reported in the result rather than raised.

    Without an environment name the file is interpolated once for the base
    configuration and once per environment, with COPILOT_ENVIRONMENT_NAME set
    to that environment. A base that only interpolates with an environment
    name is reported as a warning and checked through its environments.

    Args:
        path: Manifest file.
        env_name: Environment to validate, or None for the base and every
            environment.
        app_name: Application name. Defaults to the workspace summary.
        lookup: External variable source. Defaults to the process environment.

    Returns:
        ValidationResult with status "valid" or "invalid".
    """
    logger = get_global_logger()
    logger.step(1, 2, "Loading manifest...")
    if env_name is not None:
        try:
            workload = load_base_workload(
                path, env_name=env_name, app_name=app_name, lookup=lookup
            )
        except ManifestError as err:
            return _load_failure(path, env_name, err)
        logger.step(2, 2, "Checking schema rules...")
        return validate_workload(workload, env_name, manifest_path=path)

    # Each environment is interpolated with its own name before it is resolved.
    try:
        app_name = resolve_app_name(path, app_name)
        env_names = list_environments(path)
    except ManifestError as err:
        return _load_failure(path, None, err)

    errors: list[str] = []
    warnings: list[str] = []
    loaded: list[tuple[str | None, Workload]] = []
    try:
        loaded.append(
            (None, load_base_workload(path, app_name=app_name, lookup=lookup))
        )
    except UndefinedVariableError as err:
        if err.name != ENVIRONMENT_NAME_VAR or not env_names:
            return _load_failure(path, None, err)
        warnings.append(
            f"the base configuration references {ENVIRONMENT_NAME_VAR}; "
            "it is only checked through its environments"
        )
    except ManifestError as err:
        return _load_failure(path, None, err)

    for name in env_names:
        try:
            loaded.append(
                (
                    name,
                    load_base_workload(
                        path, env_name=name, app_name=app_name, lookup=lookup
                    ),
                )
            )
        except ManifestError as err:
            errors.append(f"environments.{name}: {err}")

    logger.step(2, 2, "Checking schema rules...")
    for target, workload in loaded:
        prefix = "" if target is None else f"environments.{target}"
        errors.extend(_check_target(workload, target, prefix))

    return ValidationResult(
        status="invalid" if errors else "valid",
        errors=errors,
        warnings=warnings,
        environment=None,
        manifest_path=str(path),
    )
