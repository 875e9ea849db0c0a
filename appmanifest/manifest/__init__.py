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

"""Typed manifest model: records, sum types, overlay and interpolation.

Modules:

- record: Declared-field record base class and field manifest
- decode: Structural decoding from YAML data and serialization back
- union: AOrB and Union two-variant sum types
- overlay: Per-environment merge of a base section and a patch
- interpolate: ${NAME} substitution in raw manifest text
- workload: The service workload schema
"""

from .interpolate import Interpolator
from .overlay import resolve
from .union import AOrB, SumType, Union
from .workload import Workload, unmarshal_workload

__all__ = [
    "AOrB",
    "Interpolator",
    "SumType",
    "Union",
    "Workload",
    "resolve",
    "unmarshal_workload",
]
