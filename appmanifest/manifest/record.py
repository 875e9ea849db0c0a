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

"""Declared-field records for manifest schemas.

Every manifest section is a dataclass deriving from Record. The decoder, the
serializer and the overlay engine all walk the same per-type field manifest
returned by record_fields(), so the set of keys a section understands is
declared once, next to the section.

Field Kinds:
    - **Plain scalar** (``cpu: int = 0``): zero value means "unset".
    - **Optional** (``spot: int | None = None``): None means "unset"; an
      explicit 0/False/"" is a real value.
    - **Collections** (``list[T]``, ``dict[str, T]``)
    - **Nested records** and **sum types** (see appmanifest.manifest.union)

Example:
    Declaring a section:
        ```python
        from dataclasses import dataclass
        from typing import ClassVar

        from appmanifest.manifest.record import Record, manifest_field

        @dataclass
        class RangeConfig(Record):
            min: int | None = None
            max: int | None = None
            spot_from: int | None = manifest_field("spot_from")

            validates: ClassVar[bool] = True

            def validate(self) -> None:
                ...
        ```
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass
from functools import lru_cache
import types
import typing
from typing import Any, ClassVar

__all__ = [
    "FieldSpec",
    "Record",
    "defines_zero",
    "is_zero",
    "manifest_field",
    "record_fields",
]


def manifest_field(
    key: str | None = None,
    *,
    default: Any = None,
    default_factory: Any = None,
    inline: bool = False,
) -> Any:
    """Declare a record field with its YAML key.

    Args:
        key: YAML key for the field. Defaults to the attribute name.
        default: Default value for immutable field types.
        default_factory: Zero-argument callable for mutable defaults
            (dicts, lists, nested records, sum types).
        inline: If True, the nested record reads its keys from the parent
            mapping instead of from a sub-mapping.

    Returns:
        A dataclasses.field() carrying the manifest metadata.
    """
    metadata = {"key": key, "inline": inline}
    if default_factory is not None:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


@dataclass(frozen=True)
class FieldSpec:
    """One entry in a record's field manifest.

    Attributes:
        name: Python attribute name.
        key: YAML key.
        type: Declared type with any ``| None`` stripped.
        optional: True when the annotation admits None.
        inline: True when the nested record shares the parent's mapping.
    """

    name: str
    key: str
    type: Any
    optional: bool
    inline: bool
    _field: Any = dataclasses.field(repr=False, compare=False)

    def default(self) -> Any:
        """Return a fresh default value for this field."""
        if self._field.default is not dataclasses.MISSING:
            return copy.deepcopy(self._field.default)
        if self._field.default_factory is not dataclasses.MISSING:
            return self._field.default_factory()
        return None


def _strip_optional(tp: Any) -> tuple[Any, bool]:
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) != len(typing.get_args(tp)):
            if len(args) == 1:
                return args[0], True
            return typing.Union[tuple(args)], True
    return tp, False


@lru_cache(maxsize=None)
def record_fields(cls: type) -> tuple[FieldSpec, ...]:
    """Return the field manifest of a record class.

    Args:
        cls: A dataclass deriving from Record.

    Returns:
        FieldSpecs in declaration order.
    """
    hints = typing.get_type_hints(cls)
    specs = []
    for f in dataclasses.fields(cls):
        tp, optional = _strip_optional(hints[f.name])
        specs.append(
            FieldSpec(
                name=f.name,
                key=f.metadata.get("key") or f.name,
                type=tp,
                optional=optional,
                inline=bool(f.metadata.get("inline")),
                _field=f,
            )
        )
    return tuple(specs)


def defines_zero(value: Any) -> bool:
    """Return True if the value exposes its own is_zero() predicate."""
    return callable(getattr(value, "is_zero", None))


def is_zero(value: Any) -> bool:
    """Return True if the value is the zero value of its type.

    None, numeric zero, False, empty strings and empty collections are zero.
    Values that define is_zero() (records, sum types) decide for themselves.
    """
    if value is None:
        return True
    if defines_zero(value):
        return value.is_zero()
    if isinstance(value, (bool, int, float, str, list, tuple, dict)):
        return not value
    return False


class Record:
    """Base class for manifest sections.

    Subclasses must be dataclasses whose fields all have defaults, so that an
    empty section (and an empty environment patch) can be constructed.

    Class Attributes:
        exclusive_fields: Pairs of field names that cannot both be set. An
            environment override that sets one clears the other.
        validates: True if the type implements validate(). The validation
            walker only calls validate() on types that declare it.
    """

    exclusive_fields: ClassVar[tuple[tuple[str, str], ...]] = ()
    validates: ClassVar[bool] = False

    def is_zero(self) -> bool:
        """Return True if no field of this section is set.

        Optional fields count as set whenever they are not None.
        """
        for spec in record_fields(type(self)):
            value = getattr(self, spec.name)
            if spec.optional and value is not None:
                return False
            if not spec.optional and not is_zero(value):
                return False
        return True

    def validate(self) -> None:
        """Check schema rules for this section.

        Raises:
            ValidationError: If a rule is broken.
        """
        return None
