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

"""Variable substitution in raw manifest text.

Before a manifest is parsed, ``${NAME}`` references are replaced with values
from two sources:

1. **Predefined variables** fixed by the invoking context:
   COPILOT_APPLICATION_NAME and COPILOT_ENVIRONMENT_NAME.
2. **External variables** read through a lookup callable (the process
   environment by default).

Substitution Rules:
    - ``NAME`` matches ``[_a-zA-Z][_a-zA-Z0-9]*``
    - ``\\${NAME}`` is written out as the literal ``${NAME}``
    - Text after a ``#`` that starts a line or follows whitespace is a
      comment and is copied untouched
    - Substituted values are not scanned again
    - A predefined variable may appear in the environment only with the same
      value; a different value raises PredefinedVariableConflictError
    - An unknown variable raises UndefinedVariableError; a variable set to
      the empty string is defined

The result always ends with exactly one newline; trailing blank lines collapse
into it whether the input uses LF or CRLF line endings.

Example:
    ```python
    from appmanifest.manifest.interpolate import Interpolator

    text = "image: ${REPO}:${COPILOT_ENVIRONMENT_NAME}  # ${UNUSED}\\n"
    interpolator = Interpolator("shop", "test", lookup={"REPO": "nginx"}.get)
    interpolator.interpolate(text)
    # 'image: nginx:test  # ${UNUSED}\\n'
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import os
import re

from appmanifest.exceptions import (
    PredefinedVariableConflictError,
    UndefinedVariableError,
)

__all__ = [
    "APPLICATION_NAME_VAR",
    "ENVIRONMENT_NAME_VAR",
    "Interpolator",
    "Lookup",
]

APPLICATION_NAME_VAR = "COPILOT_APPLICATION_NAME"
ENVIRONMENT_NAME_VAR = "COPILOT_ENVIRONMENT_NAME"

_REFERENCE = re.compile(r"(\\)?\$\{([_a-zA-Z][_a-zA-Z0-9]*)\}")
_COMMENT_START = re.compile(r"(?:^|(?<=\s))#")

Lookup = Callable[[str], str | None]


class Interpolator:
    """Substitutes ${NAME} references in manifest text.

    Args:
        app_name: Application name, exposed as COPILOT_APPLICATION_NAME.
            None leaves the variable undefined.
        env_name: Environment name, exposed as COPILOT_ENVIRONMENT_NAME.
            None leaves the variable undefined.
        lookup: Returns the external value of a variable, or None if unset.
            Defaults to ``os.environ.get``.
    """

    def __init__(
        self,
        app_name: str | None,
        env_name: str | None,
        lookup: Lookup | None = None,
    ) -> None:
        predefined: dict[str, str] = {}
        if app_name is not None:
            predefined[APPLICATION_NAME_VAR] = app_name
        if env_name is not None:
            predefined[ENVIRONMENT_NAME_VAR] = env_name
        self._predefined = predefined
        self._lookup = lookup if lookup is not None else os.environ.get

    @property
    def predefined(self) -> Mapping[str, str]:
        return dict(self._predefined)

    def interpolate(self, text: str) -> str:
        """Return ``text`` with every variable reference substituted.

        Raises:
            UndefinedVariableError: If a referenced variable has no value.
            PredefinedVariableConflictError: If the environment sets a
                predefined variable to a different value.
        """
        lines = [self._interpolate_line(line) for line in text.splitlines(keepends=True)]
        return "".join(lines).rstrip("\r\n") + "\n"

    def _interpolate_line(self, line: str) -> str:
        match = _COMMENT_START.search(line)
        if match is None:
            return _REFERENCE.sub(self._replace, line)
        code, comment = line[: match.start()], line[match.start() :]
        return _REFERENCE.sub(self._replace, code) + comment

    def _replace(self, match: re.Match[str]) -> str:
        escaped, name = match.group(1), match.group(2)
        if escaped:
            return "${" + name + "}"
        return self.resolve(name)

    def resolve(self, name: str) -> str:
        """Return the value a single variable reference expands to."""
        external = self._lookup(name)
        if name in self._predefined:
            predefined = self._predefined[name]
            if external is not None and external != predefined:
                raise PredefinedVariableConflictError(name, predefined, external)
            return predefined
        if external is None:
            raise UndefinedVariableError(name)
        return external
