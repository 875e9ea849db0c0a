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

"""Manifest file loading.

Loading a manifest is a text pipeline that runs before any typed decoding:

1. **Read** the file as UTF-8 text
2. **Interpolate** ``${NAME}`` references (see appmanifest.manifest.interpolate)
3. **Parse** the result with ``yaml.safe_load``
4. **Check** that the top level is a mapping

The typed decode into a Workload happens in appmanifest.core, so callers that
only need the raw document (for example to list environment names) can stop
here.

Error Handling:
    - ConfigError: missing file, unreadable file, YAML syntax error, empty
      document or a top level that is not a mapping. YAML errors are chained
      with ``from err``.
    - InterpolationError: propagated unchanged from the interpolator.

Example:
    ```python
    from pathlib import Path
    from appmanifest.config.loader import load_manifest_document

    data = load_manifest_document(
        Path("copilot/api/manifest.yml"), app_name="shop", env_name="test"
    )
    print(data["name"])
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from appmanifest.exceptions import ConfigError
from appmanifest.logging import get_global_logger
from appmanifest.manifest.interpolate import Interpolator, Lookup

__all__ = ["load_manifest_document", "read_manifest_text"]


def _print_yaml_content(data: dict[str, Any], prefix: str) -> None:
    """Print a parsed document line by line at debug level."""
    logger = get_global_logger()
    yaml_str = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    for line in yaml_str.split("\n"):
        if line.strip():
            logger.debug(prefix, f"  {line}")


def read_manifest_text(path: Path) -> str:
    """Read a manifest file as text.

    Raises:
        ConfigError: If the file does not exist or cannot be read.
    """
    if not path.exists():
        raise ConfigError(f"manifest file not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise ConfigError(f"cannot read manifest {path}: {err}") from err


def load_manifest_document(
    path: Path,
    *,
    app_name: str | None = None,
    env_name: str | None = None,
    lookup: Lookup | None = None,
) -> dict[str, Any]:
    """Read, interpolate and parse a manifest file.

    Args:
        path: Manifest file.
        app_name: Value of COPILOT_APPLICATION_NAME, or None to leave it
            undefined.
        env_name: Value of COPILOT_ENVIRONMENT_NAME, or None to leave it
            undefined.
        lookup: External variable source. Defaults to the process environment.

    Returns:
        The parsed top-level mapping.

    Raises:
        ConfigError: If the file is missing or is not a YAML mapping.
        InterpolationError: If a ${NAME} reference cannot be substituted.
    """
    logger = get_global_logger()
    logger.verbose("MANIFEST", f"Loading manifest: {path}")
    text = read_manifest_text(path)

    interpolator = Interpolator(app_name, env_name, lookup=lookup)
    for name, value in interpolator.predefined.items():
        logger.debug("INTERPOLATE", f"Predefined {name}={value}")
    text = interpolator.interpolate(text)

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise ConfigError(f"invalid YAML in manifest {path}: {err}") from err
    if data is None:
        raise ConfigError(f"manifest is empty: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"top-level YAML must be a mapping: {path}")

    logger.verbose(
        "MANIFEST",
        f"Parsed {len(data)} top-level key(s): {', '.join(str(k) for k in data)}",
    )
    _print_yaml_content(data, "MANIFEST")
    return data
