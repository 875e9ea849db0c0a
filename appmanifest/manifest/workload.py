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

"""Service workload manifest schema.

A workload manifest describes one deployable service::

    name: api
    type: Load Balanced Web Service
    image:
      build: api/Dockerfile
      port: 8080
    http:
      path: /
      healthcheck: /_health
    cpu: 256
    memory: 512
    count: 1
    variables:
      LOG_LEVEL: info
    environments:
      prod:
        cpu: 1024
        count:
          range: 2-10
          cpu_percentage: 70

Everything except ``name``, ``type`` and ``environments`` belongs to the
ServiceConfig section, which is also the type of each environment patch.
Workload.apply_env() resolves the section for one environment.

Polymorphic Keys:
    - image.build: Dockerfile path or build arguments
    - http.healthcheck: path or health check arguments
    - http.alias: one alias or a list
    - count: desired count or autoscaling configuration
    - count.range: ``min-max`` band or range configuration
    - exec: bool or execute-command configuration
    - command / entrypoint: shell string or argument list
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
import re
import shlex
from typing import Any, ClassVar

from appmanifest.exceptions import (
    MalformedInputError,
    ShapeMismatchError,
    ValidationError,
)
from appmanifest.manifest.decode import decode_record
from appmanifest.manifest.overlay import resolve
from appmanifest.manifest.record import Record, manifest_field
from appmanifest.manifest.union import AOrB, Union

__all__ = [
    "AdvancedCount",
    "BACKEND_SERVICE",
    "DockerBuildArgs",
    "ExecuteCommandConfig",
    "HealthCheckArgs",
    "ImageConfig",
    "IntRangeBand",
    "LOAD_BALANCED_WEB_SERVICE",
    "Logging",
    "RangeConfig",
    "RoutingRule",
    "ServiceConfig",
    "SidecarConfig",
    "WORKER_SERVICE",
    "WORKLOAD_TYPES",
    "Workload",
    "to_string_slice",
    "unmarshal_workload",
]

LOAD_BALANCED_WEB_SERVICE = "Load Balanced Web Service"
BACKEND_SERVICE = "Backend Service"
WORKER_SERVICE = "Worker Service"

WORKLOAD_TYPES = (LOAD_BALANCED_WEB_SERVICE, BACKEND_SERVICE, WORKER_SERVICE)


# -------------------------------
# Image
# -------------------------------


@dataclass
class DockerBuildArgs(Record):
    """Long form of ``image.build``."""

    context: str = ""
    dockerfile: str = ""
    args: dict[str, str] = manifest_field(default_factory=dict)
    target: str = ""
    cache_from: list[str] = manifest_field("cache_from", default_factory=list)


BuildArgsOrString = Union[str, DockerBuildArgs]


@dataclass
class ImageConfig(Record):
    """The ``image`` section. ``build`` and ``location`` are exclusive."""

    build: BuildArgsOrString = manifest_field(default_factory=BuildArgsOrString)
    location: str = ""
    port: int = 0

    exclusive_fields: ClassVar[tuple[tuple[str, str], ...]] = (("build", "location"),)
    validates: ClassVar[bool] = True

    def validate(self) -> None:
        if self.build.is_zero() and not self.location:
            raise ValidationError("one of build or location must be specified")
        if not self.build.is_zero() and self.location:
            raise ValidationError("build and location are mutually exclusive")

    def dockerfile(self) -> str | None:
        """Return the Dockerfile path to build, or None for a prebuilt image."""
        if self.build.is_plain():
            return self.build.plain
        if self.build.is_structured():
            return self.build.structured.dockerfile or None
        return None


# -------------------------------
# HTTP routing
# -------------------------------


@dataclass
class HealthCheckArgs(Record):
    """Long form of ``http.healthcheck``. Durations are in seconds."""

    path: str = ""
    port: int = 0
    success_codes: str = manifest_field("success_codes", default="")
    healthy_threshold: int | None = manifest_field("healthy_threshold")
    unhealthy_threshold: int | None = manifest_field("unhealthy_threshold")
    interval: int | None = None
    timeout: int | None = None
    grace_period: int | None = manifest_field("grace_period")

    validates: ClassVar[bool] = True

    def validate(self) -> None:
        for key in ("healthy_threshold", "unhealthy_threshold", "interval", "timeout"):
            value = getattr(self, key)
            if value is not None and value < 1:
                raise ValidationError(f"{key} must be at least 1, got {value}")


HealthCheckArgsOrString = Union[str, HealthCheckArgs]
StringOrStringSlice = AOrB[str, list[str]]


@dataclass
class RoutingRule(Record):
    """The ``http`` section."""

    path: str = ""
    healthcheck: HealthCheckArgsOrString = manifest_field(
        default_factory=HealthCheckArgsOrString
    )
    alias: StringOrStringSlice = manifest_field(default_factory=StringOrStringSlice)
    allowed_source_ips: list[str] = manifest_field(
        "allowed_source_ips", default_factory=list
    )
    stickiness: bool | None = None
    deregistration_delay: int | None = manifest_field("deregistration_delay")
    target_container: str = manifest_field("target_container", default="")

    def health_check_path(self) -> str:
        """Return the health check path, defaulting to "/"."""
        if self.healthcheck.is_plain() and self.healthcheck.plain:
            return self.healthcheck.plain
        if self.healthcheck.is_structured() and self.healthcheck.structured.path:
            return self.healthcheck.structured.path
        return "/"


# -------------------------------
# Count and autoscaling
# -------------------------------


class IntRangeBand(str):
    """A ``min-max`` range written as one string, e.g. ``1-10``."""

    _PATTERN = re.compile(r"^(\d+)-(\d+)$")

    @classmethod
    def from_raw(cls, raw: Any, path: str = "") -> IntRangeBand:
        if not isinstance(raw, str):
            kind = "mapping" if isinstance(raw, dict) else type(raw).__name__
            raise ShapeMismatchError(f"cannot decode {kind} into IntRangeBand", path)
        if cls._PATTERN.match(raw.strip()) is None:
            raise MalformedInputError(
                f"invalid range value {raw!r}: should be in format of min-max", path
            )
        return cls(raw.strip())

    def parse(self) -> tuple[int, int]:
        """Return the (min, max) bounds of the band."""
        match = self._PATTERN.match(self)
        if match is None:
            raise MalformedInputError(f"invalid range value {str(self)!r}")
        return int(match.group(1)), int(match.group(2))


@dataclass
class RangeConfig(Record):
    """Long form of ``count.range``."""

    min: int | None = None
    max: int | None = None
    spot_from: int | None = manifest_field("spot_from")

    validates: ClassVar[bool] = True

    def validate(self) -> None:
        if self.min is None or self.max is None:
            raise ValidationError("min and max must both be specified")
        if self.min > self.max:
            raise ValidationError(f"min value {self.min} cannot be larger than max value {self.max}")


Range = Union[IntRangeBand, RangeConfig]

_AUTOSCALING_FIELDS = (
    "range",
    "cpu_percentage",
    "memory_percentage",
    "requests",
    "response_time",
)


@dataclass
class AdvancedCount(Record):
    """Long form of ``count``: autoscaling settings or a spot count."""

    range: Range = manifest_field(default_factory=Range)
    cpu_percentage: int | None = manifest_field("cpu_percentage")
    memory_percentage: int | None = manifest_field("memory_percentage")
    requests: int | None = None
    response_time: int | None = manifest_field("response_time")
    spot: int | None = None

    exclusive_fields: ClassVar[tuple[tuple[str, str], ...]] = tuple(
        ("spot", name) for name in _AUTOSCALING_FIELDS
    )
    validates: ClassVar[bool] = True

    def has_autoscaling(self) -> bool:
        if not self.range.is_zero():
            return True
        return any(getattr(self, name) is not None for name in _AUTOSCALING_FIELDS[1:])

    def validate(self) -> None:
        if self.spot is not None and self.has_autoscaling():
            raise ValidationError(
                "spot is mutually exclusive with range, cpu_percentage, "
                "memory_percentage, requests and response_time"
            )
        if self.has_autoscaling() and self.range.is_zero():
            raise ValidationError("range must be specified when autoscaling metrics are set")

    def range_bounds(self) -> tuple[int, int] | None:
        if self.range.is_plain():
            return self.range.plain.parse()
        if self.range.is_structured():
            bounds = self.range.structured
            if bounds.min is not None and bounds.max is not None:
                return bounds.min, bounds.max
        return None


Count = Union[int, AdvancedCount]


# -------------------------------
# Other sections
# -------------------------------


@dataclass
class ExecuteCommandConfig(Record):
    """Long form of ``exec``."""

    enable: bool | None = None


ExecuteCommand = AOrB[bool, ExecuteCommandConfig]
CommandOverride = AOrB[str, list[str]]


@dataclass
class Logging(Record):
    """The ``logging`` section (log router sidecar)."""

    image: str = ""
    destination: dict[str, str] = manifest_field(default_factory=dict)
    enable_metadata: bool | None = manifest_field("enable_metadata")
    secret_options: dict[str, str] = manifest_field("secret_options", default_factory=dict)
    config_file: str = manifest_field("config_file", default="")


@dataclass
class SidecarConfig(Record):
    """One entry of ``sidecars``."""

    port: str = ""
    image: str = ""
    essential: bool | None = None
    credentials_parameter: str = manifest_field("credentials_parameter", default="")
    variables: dict[str, str] = manifest_field(default_factory=dict)
    secrets: dict[str, str] = manifest_field(default_factory=dict)
    command: CommandOverride = manifest_field(default_factory=CommandOverride)

    validates: ClassVar[bool] = True

    def validate(self) -> None:
        if not self.image:
            raise ValidationError("image must be specified")


@dataclass
class ServiceConfig(Record):
    """Overridable service settings; also the type of an environment patch."""

    image: ImageConfig = manifest_field(default_factory=ImageConfig)
    http: RoutingRule = manifest_field(default_factory=RoutingRule)
    cpu: int = 0
    memory: int = 0
    platform: str = ""
    count: Count = manifest_field(default_factory=Count)
    execute_command: ExecuteCommand = manifest_field("exec", default_factory=ExecuteCommand)
    entrypoint: CommandOverride = manifest_field(default_factory=CommandOverride)
    command: CommandOverride = manifest_field(default_factory=CommandOverride)
    variables: dict[str, str] = manifest_field(default_factory=dict)
    secrets: dict[str, str] = manifest_field(default_factory=dict)
    env_file: str = manifest_field("env_file", default="")
    logging: Logging | None = None
    sidecars: dict[str, SidecarConfig] = manifest_field(default_factory=dict)

    validates: ClassVar[bool] = True

    def validate(self) -> None:
        if self.cpu < 0:
            raise ValidationError(f"cpu must not be negative, got {self.cpu}")
        if self.memory < 0:
            raise ValidationError(f"memory must not be negative, got {self.memory}")

    def desired_count(self) -> int | None:
        """Return the number of tasks to start with, if it can be determined.

        A plain count is used as is. With autoscaling the lower bound of the
        range is used; with spot placement the spot count.
        """
        if self.count.is_plain():
            return self.count.plain
        if not self.count.is_structured():
            return None
        advanced = self.count.structured
        if advanced.spot is not None:
            return advanced.spot
        bounds = advanced.range_bounds()
        return bounds[0] if bounds else None


def to_string_slice(value: AOrB) -> list[str]:
    """Return a command override as an argument list.

    A plain string is split with shell quoting rules.
    """
    if value.is_plain():
        return shlex.split(value.plain)
    if value.is_structured():
        return list(value.structured)
    return []


# -------------------------------
# Workload
# -------------------------------


@dataclass
class Workload(Record):
    """A workload manifest: identity, base section and environment patches."""

    name: str = ""
    type: str = ""
    config: ServiceConfig = manifest_field(inline=True, default_factory=ServiceConfig)
    environments: dict[str, ServiceConfig] = manifest_field(default_factory=dict)

    validates: ClassVar[bool] = True

    def validate(self) -> None:
        if not self.name:
            raise ValidationError("name must be specified")
        if self.type not in WORKLOAD_TYPES:
            raise ValidationError(
                f"type {self.type!r} is not one of: {', '.join(WORKLOAD_TYPES)}"
            )

    def apply_env(self, env_name: str | None) -> Workload:
        """Return the workload as deployed to one environment.

        Args:
            env_name: Environment name. None, or a name without overrides,
                returns an independent copy of this workload.

        Returns:
            A new Workload whose ``config`` has the environment's overrides
            applied and whose ``environments`` is empty.

        Raises:
            MergeConflictError: If the overrides cannot be merged.
        """
        patch = self.environments.get(env_name) if env_name is not None else None
        if patch is None:
            return copy.deepcopy(self)
        return Workload(
            name=self.name,
            type=self.type,
            config=resolve(self.config, patch, env_name=env_name),
            environments={},
        )


def unmarshal_workload(data: dict[str, Any]) -> Workload:
    """Decode a parsed manifest mapping into a Workload.

    Raises:
        ShapeMismatchError: If a value has the wrong shape.
        MalformedInputError: If a value is malformed, or the workload type
            is not supported.
    """
    workload = decode_record(Workload, data)
    if workload.type and workload.type not in WORKLOAD_TYPES:
        raise MalformedInputError(f"workload type {workload.type!r} is not supported", "type")
    return workload
