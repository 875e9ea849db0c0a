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

"""Two-variant sum types for polymorphic manifest keys.

Many manifest keys accept a short form or a long form::

    healthcheck: /health            # plain
    healthcheck:                    # structured
      path: /health
      interval: 10

A field declared as ``Union[str, HealthCheckArgs]`` holds exactly one of the
two shapes, chosen while decoding. Two flavours exist:

- **AOrB**: the first variant that decodes without a shape mismatch wins.
- **Union**: as AOrB, but a decoded value that defines is_zero() and is
  zero (for example a record with none of its keys present) does not count
  as a match, so decoding falls through to the structured variant.

Decoding Algorithm:
    1. Clear any previously held value.
    2. Try the plain type. Success stops here.
    3. A ShapeMismatchError at the field itself (or, for Union, a zero
       result) moves on to the structured type. A mismatch raised for a
       nested key, and any other error, propagates unchanged.
    4. If the structured type also mismatches or is zero, the value stays
       unset. Unset is a valid state, not an error.

Subscripting (``Union[int, AdvancedCount]``) returns a cached subclass bound
to the two payload types, usable both as a dataclass annotation and as a
``default_factory``.

Example:
    ```python
    from appmanifest.manifest.union import AOrB

    StringOrList = AOrB[str, list[str]]

    alias = StringOrList.from_raw(["example.com", "www.example.com"])
    alias.is_structured()  # True
    alias.value()          # ['example.com', 'www.example.com']
    alias.to_raw()         # ['example.com', 'www.example.com']
    ```
"""

from __future__ import annotations

import enum
from typing import Any, ClassVar

from appmanifest.exceptions import ShapeMismatchError
from appmanifest.manifest.decode import decode_value, encode_value
from appmanifest.manifest.record import defines_zero

__all__ = ["AOrB", "SumType", "Union"]


class _Variant(enum.Enum):
    PLAIN = "plain"
    STRUCTURED = "structured"


_parameterized: dict[tuple[Any, Any, Any], type] = {}


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or str(tp)


class SumType:
    """Shared machinery for AOrB and Union.

    Class Attributes:
        plain_type: Type of the short form, set by subscription.
        structured_type: Type of the long form, set by subscription.
    """

    plain_type: ClassVar[Any] = None
    structured_type: ClassVar[Any] = None
    skip_zero: ClassVar[bool] = False

    def __init__(self) -> None:
        self._variant: _Variant | None = None
        self._value: Any = None

    def __class_getitem__(cls, params: tuple[Any, Any]) -> type[SumType]:
        if cls.plain_type is not None:
            raise TypeError(f"{cls.__name__} is already parameterized")
        plain, structured = params
        key = (cls, plain, structured)
        bound = _parameterized.get(key)
        if bound is None:
            name = f"{cls.__name__}[{_type_name(plain)}, {_type_name(structured)}]"
            bound = type(
                name,
                (cls,),
                {
                    "plain_type": plain,
                    "structured_type": structured,
                    "__module__": cls.__module__,
                    "__qualname__": name,
                },
            )
            bound = _parameterized.setdefault(key, bound)
        return bound

    # -------------------------------
    # Construction
    # -------------------------------

    @classmethod
    def from_raw(cls, raw: Any, path: str = "") -> SumType:
        """Create an instance and decode ``raw`` into it."""
        instance = cls()
        instance.decode(raw, path)
        return instance

    @classmethod
    def from_plain(cls, value: Any) -> SumType:
        instance = cls()
        instance.set_plain(value)
        return instance

    @classmethod
    def from_structured(cls, value: Any) -> SumType:
        instance = cls()
        instance.set_structured(value)
        return instance

    # -------------------------------
    # Decoding
    # -------------------------------

    def _matches(self, value: Any) -> bool:
        if self.skip_zero and defines_zero(value):
            return not value.is_zero()
        return True

    def decode(self, raw: Any, path: str = "") -> None:
        """Decode a parsed YAML value into whichever variant fits.

        Args:
            raw: Parsed YAML value.
            path: Dotted path of ``raw`` for error messages.

        Raises:
            ShapeMismatchError: If a key nested inside either variant has the
                wrong shape.
            MalformedInputError: Or any other non-shape DecodeError raised
                while decoding either variant.
        """
        cls = type(self)
        if cls.plain_type is None:
            raise TypeError(f"{cls.__name__} must be parameterized before decoding")

        self.reset()
        if raw is None:
            return

        try:
            value = decode_value(cls.plain_type, raw, path)
        except ShapeMismatchError as err:
            if err.path != path:
                raise
        else:
            if self._matches(value):
                self.set_plain(value)
                return

        try:
            value = decode_value(cls.structured_type, raw, path)
        except ShapeMismatchError as err:
            if err.path != path:
                raise
            return
        if self._matches(value):
            self.set_structured(value)

    # -------------------------------
    # State
    # -------------------------------

    def set_plain(self, value: Any) -> None:
        self._variant = _Variant.PLAIN
        self._value = value

    def set_structured(self, value: Any) -> None:
        self._variant = _Variant.STRUCTURED
        self._value = value

    def reset(self) -> None:
        self._variant = None
        self._value = None

    def is_plain(self) -> bool:
        return self._variant is _Variant.PLAIN

    def is_structured(self) -> bool:
        return self._variant is _Variant.STRUCTURED

    def is_zero(self) -> bool:
        """Return True if neither variant is set."""
        return self._variant is None

    @property
    def plain(self) -> Any:
        """The plain payload, or None if the plain variant is not set."""
        return self._value if self.is_plain() else None

    @property
    def structured(self) -> Any:
        """The structured payload, or None if the structured variant is not set."""
        return self._value if self.is_structured() else None

    def value(self) -> Any:
        """Return whichever payload is set, or None."""
        return self._value

    def to_raw(self) -> Any:
        """Serialize the set variant to plain YAML data (None when unset)."""
        if self._variant is None:
            return None
        return encode_value(self._value)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._variant == other._variant and self._value == other._value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._variant is None:
            return f"{type(self).__name__}()"
        return f"{type(self).__name__}({self._variant.value}={self._value!r})"


class AOrB(SumType):
    """Sum type where the first variant that decodes wins."""


class Union(SumType):
    """Sum type that also skips a variant whose decoded value is zero."""

    skip_zero = True
