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


"""Public API return types for appmanifest.

This module defines dataclasses for return values from public API functions
in appmanifest.core and appmanifest.validation.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from pathlib import Path
        from appmanifest.core import render_workload
        from appmanifest.results import RenderResult

        result: RenderResult = render_workload(
            Path("copilot/api/manifest.yml"), env_name="prod"
        )
        print(result.yaml)  # Attribute access, not dict access
        ```

Note:
    Only public API return types belong in this module. Manifest types
    (like Workload) stay with the schema in appmanifest.manifest.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from appmanifest.manifest.workload import Workload


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a workload manifest.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages, each prefixed by its field path
            (empty if valid).
        warnings: List of warning messages.
        environment: Environment the manifest was resolved for, or None for
            the base configuration.
        manifest_path: String path to the validated manifest, or None when
            an in-memory workload was validated.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    environment: str | None
    manifest_path: str | None


@dataclass(frozen=True)
class RenderResult:
    """Result from resolving a workload manifest for one environment.

    Attributes:
        workload: The effective workload with overrides applied.
        environment: Environment the manifest was resolved for, or None.
        application: Application name used for interpolation, or None.
        manifest_path: Path to the manifest file.
        yaml: The effective workload serialized as YAML text.
    """

    workload: Workload
    environment: str | None
    application: str | None
    manifest_path: Path
    yaml: str
