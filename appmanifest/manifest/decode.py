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

"""Structural decoding and serialization of manifest values.

The decoder walks the plain Python data produced by ``yaml.safe_load`` into
typed records, following each record's declared field manifest. Its one
important contract is the error it raises:

- ShapeMismatchError: the raw value has the wrong shape for the target type
  (a sequence where a string is declared, a mapping where an int is
  declared). Sum-type fields use this to fall back to their other variant.
- MalformedInputError: the shape fits but the content does not (raised by
  types with their own ``from_raw`` parser, such as range bands).

Decoding Rules:
    - ``str`` accepts any scalar (``port: 80`` decodes to ``"80"``)
    - ``int`` accepts ints only (not bools); ``float`` accepts ints and floats
    - ``bool`` accepts booleans only
    - ``list[T]`` and ``dict[str, T]`` decode element-wise
    - Records accept mappings; unknown keys are ignored
    - Types with a ``from_raw(raw, path)`` classmethod decode themselves
    - YAML null decodes to the field default

The serializer is the inverse: encode_value() renders records back to plain
data, dropping unset fields, and dump_yaml() renders that data as YAML text.
"""

from __future__ import annotations

import copy
import datetime
import typing
from typing import Any

import yaml

from appmanifest.exceptions import ShapeMismatchError
from appmanifest.manifest.record import Record, is_zero, record_fields

__all__ = ["decode_record", "decode_value", "dump_yaml", "encode_value"]

_SCALARS = (str, int, float, bool, datetime.date)


def _join(path: str, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)


def _describe(raw: Any) -> str:
    if isinstance(raw, dict):
        return "mapping"
    if isinstance(raw, (list, tuple)):
        return "sequence"
    if isinstance(raw, bool):
        return "bool"
    if isinstance(raw, int):
        return "int"
    if isinstance(raw, float):
        return "float"
    if isinstance(raw, str):
        return "string"
    return type(raw).__name__


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or str(tp)


def _mismatch(tp: Any, raw: Any, path: str) -> ShapeMismatchError:
    return ShapeMismatchError(
        f"cannot decode {_describe(raw)} into {_type_name(tp)}", path
    )


def _decode_str(raw: Any, path: str) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, datetime.date):
        return raw.isoformat()
    if isinstance(raw, _SCALARS):
        return str(raw)
    raise _mismatch(str, raw, path)


def decode_record(cls: type[Record], raw: Any, path: str = "") -> Record:
    """Decode a mapping into a record.

    Args:
        cls: Record class to build.
        raw: Parsed YAML value.
        path: Dotted path of ``raw`` for error messages.

    Returns:
        A new instance of ``cls``.

    Raises:
        ShapeMismatchError: If ``raw`` (or a nested value) has the wrong shape.
        MalformedInputError: If a nested value has unusable content.
    """
    if not isinstance(raw, dict):
        raise _mismatch(cls, raw, path)

    values: dict[str, Any] = {}
    for spec in record_fields(cls):
        if spec.inline:
            values[spec.name] = decode_record(spec.type, raw, path)
            continue
        item = raw.get(spec.key)
        if item is None:
            values[spec.name] = spec.default()
            continue
        values[spec.name] = decode_value(spec.type, item, _join(path, spec.key))
    return cls(**values)


def decode_value(tp: Any, raw: Any, path: str = "") -> Any:
    """Decode a parsed YAML value into the declared type.

    Args:
        tp: Target type (builtin scalar, ``list[T]``, ``dict[str, T]``,
            Record subclass, or a type with a ``from_raw`` classmethod).
        raw: Parsed YAML value.
        path: Dotted path of ``raw`` for error messages.

    Returns:
        The decoded value, or None when ``raw`` is None.

    Raises:
        ShapeMismatchError: If the shape of ``raw`` does not fit ``tp``.
        MalformedInputError: If a self-decoding type rejects the content.
    """
    if raw is None:
        return None
    if tp is Any or tp is object:
        return copy.deepcopy(raw)

    origin = typing.get_origin(tp)
    if origin is None and isinstance(tp, type):
        from_raw = getattr(tp, "from_raw", None)
        if callable(from_raw):
            return from_raw(raw, path)
        if issubclass(tp, Record):
            return decode_record(tp, raw, path)

    if origin is list:
        if not isinstance(raw, list):
            raise _mismatch(tp, raw, path)
        (item_tp,) = typing.get_args(tp) or (Any,)
        return [
            decode_value(item_tp, item, f"{path}[{idx}]")
            for idx, item in enumerate(raw)
        ]
    if origin is dict:
        if not isinstance(raw, dict):
            raise _mismatch(tp, raw, path)
        _, value_tp = typing.get_args(tp) or (str, Any)
        return {
            str(key): decode_value(value_tp, value, _join(path, key))
            for key, value in raw.items()
        }

    if tp is str:
        return _decode_str(raw, path)
    if tp is bool:
        if not isinstance(raw, bool):
            raise _mismatch(tp, raw, path)
        return raw
    if tp is int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise _mismatch(tp, raw, path)
        return raw
    if tp is float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise _mismatch(tp, raw, path)
        return float(raw)

    raise TypeError(f"unsupported manifest field type: {tp!r}")


def encode_value(value: Any) -> Any:
    """Render a decoded value back to plain YAML-compatible data.

    Records drop unset fields: None for optional fields, the zero value for
    everything else. Sum types render whichever variant is set, or None.
    """
    if value is None:
        return None
    to_raw = getattr(value, "to_raw", None)
    if callable(to_raw):
        return to_raw()
    if isinstance(value, Record):
        return _encode_record(value)
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    if isinstance(value, str):
        # yaml.safe_dump refuses str subclasses
        return str(value)
    return value


def _encode_record(record: Record) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for spec in record_fields(type(record)):
        value = getattr(record, spec.name)
        if spec.inline:
            out.update(_encode_record(value))
            continue
        if value is None or (not spec.optional and is_zero(value)):
            continue
        out[spec.key] = encode_value(value)
    return out


def dump_yaml(value: Any) -> str:
    """Serialize a record (or any decoded value) as YAML text."""
    return yaml.safe_dump(
        encode_value(value), default_flow_style=False, sort_keys=False
    )
