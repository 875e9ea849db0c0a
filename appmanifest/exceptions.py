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

"""Exception hierarchy for appmanifest.

This module defines a custom exception hierarchy that allows library users
to distinguish between different types of errors:

- ConfigError: Manifest file and workspace errors (missing files, YAML syntax)
- DecodeError: A manifest value does not fit its declared type
- MergeConflictError: An environment override is incompatible with the base
- InterpolationError: A ${NAME} reference cannot be substituted
- ValidationError: A resolved manifest breaks a schema rule

All exceptions inherit from ManifestError, allowing users to catch all
appmanifest errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from appmanifest.core import load_workload
        from appmanifest.exceptions import InterpolationError, MergeConflictError

        try:
            workload = load_workload(Path("copilot/api/manifest.yml"), env_name="test")
        except InterpolationError as e:
            print(f"Variable {e.name}: {e}")
        except MergeConflictError as e:
            print(f"Environment {e.env_name}: {e}")
        ```

    Catching all appmanifest errors:
        ```python
        from appmanifest.exceptions import ManifestError

        try:
            workload = load_workload(Path("copilot/api/manifest.yml"))
        except ManifestError as e:
            print(f"Manifest error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "ManifestError",
    "ConfigError",
    "DecodeError",
    "ShapeMismatchError",
    "MalformedInputError",
    "MergeConflictError",
    "InterpolationError",
    "UndefinedVariableError",
    "PredefinedVariableConflictError",
    "ValidationError",
]


class ManifestError(Exception):
    """Base exception for all appmanifest errors."""

    pass


class ConfigError(ManifestError):
    """Raised for manifest file and workspace errors.

    This exception is raised when there are problems with:

    - Missing manifest files or workspace directories
    - YAML parsing (syntax errors)
    - A manifest whose top level is not a mapping
    """

    pass


class DecodeError(ManifestError):
    """Raised when a raw manifest value cannot be decoded into its type.

    Attributes:
        path: Dotted path of the offending key (e.g. "http.healthcheck").
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class ShapeMismatchError(DecodeError):
    """Raised when a raw value's shape does not fit the target type.

    A YAML list decoded into a string, or a mapping decoded into an int, is a
    shape mismatch. Sum-type fields treat it as a signal to try the other
    variant rather than as a failure.
    """

    pass


class MalformedInputError(DecodeError):
    """Raised when a value has the right shape but unusable content.

    Unlike ShapeMismatchError this is never recovered from; sum-type fields
    propagate it unchanged.
    """

    pass


class MergeConflictError(ManifestError):
    """Raised when an environment override cannot be merged into the base.

    Attributes:
        env_name: Environment whose overrides were being applied, or None.
        path: Dotted path of the conflicting field.
    """

    def __init__(
        self, message: str, *, env_name: str | None = None, path: str = ""
    ) -> None:
        self.env_name = env_name
        self.path = path
        prefix = "apply overrides"
        if env_name is not None:
            prefix = f"{prefix} for environment {env_name!r}"
        if path:
            prefix = f"{prefix} at {path}"
        super().__init__(f"{prefix}: {message}")


class InterpolationError(ManifestError):
    """Base class for ${NAME} substitution failures.

    Attributes:
        name: The variable name that could not be substituted.
    """

    def __init__(self, message: str, name: str) -> None:
        self.name = name
        super().__init__(message)


class UndefinedVariableError(InterpolationError):
    """Raised when a referenced variable is neither predefined nor set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"environment variable {name} is not defined", name)


class PredefinedVariableConflictError(InterpolationError):
    """Raised when the environment sets a predefined variable to another value.

    Attributes:
        predefined: Value fixed by the invoking context.
        external: Conflicting value found in the environment.
    """

    def __init__(self, name: str, predefined: str, external: str) -> None:
        self.predefined = predefined
        self.external = external
        super().__init__(
            f"predefined environment variable {name} cannot be overridden "
            f"(predefined {predefined!r}, got {external!r})",
            name,
        )


class ValidationError(ManifestError):
    """Raised by a record's validate() hook when a schema rule is broken."""

    pass
