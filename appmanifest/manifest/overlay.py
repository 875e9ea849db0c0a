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

"""Per-environment overlay of manifest sections.

A manifest carries one base configuration and an ``environments`` mapping of
sparse patches with the same record type. resolve() computes the effective
configuration for one environment by walking the record's declared fields.

Merge Behavior:
    - **Scalars**: the patch wins only if it is non-zero. An explicit
      ``cpu: 0`` in a patch is indistinguishable from leaving ``cpu`` out.
    - **Optional fields** (``T | None``): the patch wins whenever it is not
      None, so ``spot: 0`` does override.
    - **Dicts**: merged key by key; keys present on both sides recurse.
      A map value counts as set whenever it is not None, so unlike a plain
      scalar field, ``variables: {LOG_LEVEL: ""}`` in a patch does replace
      the base value.
    - **Lists**: a non-empty patch list replaces the base list entirely.
    - **Records**: merged field by field; a None patch keeps the base.
    - **Sum types**: a set patch variant replaces the base. When both sides
      hold the same variant the payloads are merged; otherwise the base's
      other variant is dropped.
    - **Mutually exclusive fields**: setting one field of a pair in a patch
      clears the other in the result; setting both is a MergeConflictError.

Inputs are never mutated; every result is an independent deep copy, so one
base can be resolved for several environments in turn.

Example:
    ```python
    from appmanifest.manifest.overlay import resolve

    base = ServiceConfig(cpu=256, memory=512)
    patch = ServiceConfig(cpu=1024)
    resolve(base, patch, env_name="prod")  # cpu=1024, memory=512
    ```
"""

from __future__ import annotations

import copy
from typing import Any, TypeVar

from appmanifest.exceptions import MergeConflictError
from appmanifest.manifest.record import FieldSpec, Record, is_zero, record_fields
from appmanifest.manifest.union import SumType

__all__ = ["resolve"]

R = TypeVar("R", bound=Record)


def _shape(value: Any) -> str:
    if isinstance(value, SumType):
        return "sum type"
    if isinstance(value, Record):
        return "section"
    if isinstance(value, dict):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "sequence"
    return "scalar"


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _is_set(spec: FieldSpec, value: Any) -> bool:
    if spec.optional:
        return value is not None
    return not is_zero(value)


def resolve(base: R, patch: R | None = None, *, env_name: str | None = None) -> R:
    """Compute the effective section for one environment.

    Args:
        base: Base configuration. Not modified.
        patch: Sparse overrides of the same record type, or None.
        env_name: Environment being resolved, used in error messages.

    Returns:
        A new record. Deep-equal to ``base`` when ``patch`` is None or empty.

    Raises:
        MergeConflictError: If a patch value's shape is incompatible with the
            base value, or a patch sets two mutually exclusive fields.
    """
    if patch is None:
        return copy.deepcopy(base)
    return _merge(base, patch, optional=True, path="", env_name=env_name)


def _merge(
    base: Any, patch: Any, *, optional: bool, path: str, env_name: str | None
) -> Any:
    if patch is None:
        return copy.deepcopy(base)

    if base is not None:
        if _shape(base) != _shape(patch):
            raise MergeConflictError(
                f"cannot override {_shape(base)} with {_shape(patch)}",
                env_name=env_name,
                path=path,
            )
        if isinstance(patch, (Record, SumType)) and type(base) is not type(patch):
            raise MergeConflictError(
                f"cannot override {type(base).__name__} with {type(patch).__name__}",
                env_name=env_name,
                path=path,
            )

    if isinstance(patch, SumType):
        return _merge_sum(base, patch, path=path, env_name=env_name)

    if isinstance(patch, Record):
        if base is None:
            return copy.deepcopy(patch)
        return _merge_record(base, patch, path=path, env_name=env_name)

    if isinstance(patch, dict):
        if base is None:
            return copy.deepcopy(patch)
        merged = copy.deepcopy(base)
        for key, value in patch.items():
            if key in base:
                merged[key] = _merge(
                    base[key],
                    value,
                    optional=True,
                    path=_join(path, str(key)),
                    env_name=env_name,
                )
            else:
                merged[key] = copy.deepcopy(value)
        return merged

    if isinstance(patch, (list, tuple)):
        if not patch:
            return copy.deepcopy(base)
        return copy.deepcopy(patch)

    if optional or not is_zero(patch):
        return copy.deepcopy(patch)
    return copy.deepcopy(base)


def _merge_sum(
    base: SumType | None, patch: SumType, *, path: str, env_name: str | None
) -> SumType:
    if patch.is_zero():
        return copy.deepcopy(base if base is not None else patch)

    same_variant = base is not None and (
        (base.is_plain() and patch.is_plain())
        or (base.is_structured() and patch.is_structured())
    )
    if same_variant:
        payload = _merge(
            base.value(), patch.value(), optional=True, path=path, env_name=env_name
        )
    else:
        payload = copy.deepcopy(patch.value())

    result = type(patch)()
    if patch.is_plain():
        result.set_plain(payload)
    else:
        result.set_structured(payload)
    return result


def _merge_record(base: R, patch: R, *, path: str, env_name: str | None) -> R:
    specs = {spec.name: spec for spec in record_fields(type(base))}
    values: dict[str, Any] = {}
    for spec in specs.values():
        values[spec.name] = _merge(
            getattr(base, spec.name),
            getattr(patch, spec.name),
            optional=spec.optional,
            path=path if spec.inline else _join(path, spec.key),
            env_name=env_name,
        )

    for first, second in type(base).exclusive_fields:
        first_spec, second_spec = specs[first], specs[second]
        first_set = _is_set(first_spec, getattr(patch, first))
        second_set = _is_set(second_spec, getattr(patch, second))
        if first_set and second_set:
            raise MergeConflictError(
                f"{_join(path, first_spec.key)} is mutually exclusive with "
                f"{_join(path, second_spec.key)} and they cannot be specified together",
                env_name=env_name,
                path=path,
            )
        if first_set:
            values[second] = second_spec.default()
        elif second_set:
            values[first] = first_spec.default()

    return type(base)(**values)
