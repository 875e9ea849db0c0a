"""
Tests for appmanifest.manifest.workload module.

Tests the service workload schema including:
- Range bands
- Desired count, command and health check helpers
- validate() hooks on each section
- unmarshal_workload
"""

from __future__ import annotations

import pytest

from appmanifest.exceptions import (
    MalformedInputError,
    ShapeMismatchError,
    ValidationError,
)
from appmanifest.manifest.decode import decode_record
from appmanifest.manifest.workload import (
    BACKEND_SERVICE,
    AdvancedCount,
    HealthCheckArgs,
    ImageConfig,
    IntRangeBand,
    RangeConfig,
    RoutingRule,
    ServiceConfig,
    SidecarConfig,
    Workload,
    to_string_slice,
    unmarshal_workload,
)


def _service(**raw) -> ServiceConfig:
    return decode_record(ServiceConfig, raw)


class TestIntRangeBand:
    """Tests for min-max range strings."""

    def test_parse(self):
        """Test that a band parses into bounds."""
        assert IntRangeBand.from_raw("1-10").parse() == (1, 10)

    def test_surrounding_whitespace_is_trimmed(self):
        """Test that whitespace around the band is ignored."""
        assert IntRangeBand.from_raw(" 2-4 ") == "2-4"

    @pytest.mark.parametrize("raw", ["abc", "1-", "-5", "1..10", "ten-twenty"])
    def test_malformed_band_raises(self, raw):
        """Test that strings not in min-max form are malformed."""
        with pytest.raises(MalformedInputError):
            IntRangeBand.from_raw(raw)

    def test_non_string_is_shape_mismatch(self):
        """Test that a mapping is a shape mismatch, not malformed input."""
        with pytest.raises(ShapeMismatchError):
            IntRangeBand.from_raw({"min": 1})

    def test_malformed_band_in_manifest(self):
        """Test that count.range: abc fails decoding with its path."""
        with pytest.raises(MalformedInputError, match="count.range"):
            _service(count={"range": "abc"})

    def test_mistyped_healthcheck_field_in_manifest(self):
        """Test that a bad nested healthcheck key fails instead of dropping the section."""
        with pytest.raises(ShapeMismatchError, match="http.healthcheck.interval"):
            _service(http={"healthcheck": {"path": "/h", "interval": "ten"}})

    def test_mistyped_spot_in_manifest(self):
        """Test that a bad spot value fails instead of dropping the count."""
        with pytest.raises(ShapeMismatchError, match="count.spot"):
            _service(count={"spot": "two"})


class TestDesiredCount:
    """Tests for ServiceConfig.desired_count."""

    def test_plain_count(self):
        """Test that a plain count is returned as is."""
        assert _service(count=3).desired_count() == 3

    def test_range_band_lower_bound(self):
        """Test that autoscaling starts at the range minimum."""
        assert _service(count={"range": "2-10"}).desired_count() == 2

    def test_range_config_lower_bound(self):
        """Test that a range mapping also yields its minimum."""
        assert _service(count={"range": {"min": 4, "max": 8}}).desired_count() == 4

    def test_spot_count(self):
        """Test that a spot count is used when set."""
        assert _service(count={"spot": 5}).desired_count() == 5

    def test_unset_count(self):
        """Test that no count gives None."""
        assert ServiceConfig().desired_count() is None


class TestHelpers:
    """Tests for small accessors on schema sections."""

    def test_command_string_is_split(self):
        """Test that a command string is split with shell rules."""
        config = _service(command="python -m app --name 'my app'")

        assert to_string_slice(config.command) == ["python", "-m", "app", "--name", "my app"]

    def test_command_list_is_kept(self):
        """Test that a command list is returned unchanged."""
        config = _service(entrypoint=["/bin/sh", "-c"])

        assert to_string_slice(config.entrypoint) == ["/bin/sh", "-c"]

    def test_unset_command_is_empty(self):
        """Test that an unset command gives an empty list."""
        assert to_string_slice(ServiceConfig().command) == []

    def test_health_check_path(self):
        """Test health check path for each form."""
        assert RoutingRule().health_check_path() == "/"
        assert _service(http={"healthcheck": "/_ok"}).http.health_check_path() == "/_ok"
        assert (
            _service(http={"healthcheck": {"path": "/ready"}}).http.health_check_path()
            == "/ready"
        )

    def test_dockerfile(self):
        """Test Dockerfile path for each build form."""
        assert _service(image={"build": "a/Dockerfile"}).image.dockerfile() == "a/Dockerfile"
        assert (
            _service(image={"build": {"dockerfile": "b/Dockerfile"}}).image.dockerfile()
            == "b/Dockerfile"
        )
        assert _service(image={"location": "nginx"}).image.dockerfile() is None


class TestValidateHooks:
    """Tests for validate() on individual sections."""

    def test_image_requires_build_or_location(self):
        """Test that an empty image section is invalid."""
        with pytest.raises(ValidationError, match="build or location"):
            ImageConfig().validate()

    def test_image_rejects_build_and_location(self):
        """Test that build and location cannot both be set."""
        image = _service(image={"build": "Dockerfile", "location": "nginx"}).image

        with pytest.raises(ValidationError, match="mutually exclusive"):
            image.validate()

    def test_range_min_above_max(self):
        """Test that min must not exceed max."""
        with pytest.raises(ValidationError, match="cannot be larger"):
            RangeConfig(min=10, max=2).validate()

    def test_range_needs_both_bounds(self):
        """Test that a range mapping needs min and max."""
        with pytest.raises(ValidationError):
            RangeConfig(min=1).validate()

    def test_spot_with_autoscaling(self):
        """Test that spot cannot be combined with autoscaling fields."""
        count = _service(count={"spot": 2, "cpu_percentage": 50}).count.structured

        with pytest.raises(ValidationError, match="spot"):
            count.validate()

    def test_autoscaling_needs_range(self):
        """Test that metrics without a range are invalid."""
        with pytest.raises(ValidationError, match="range must be specified"):
            AdvancedCount(cpu_percentage=70).validate()

    def test_health_check_thresholds_positive(self):
        """Test that thresholds must be at least 1."""
        with pytest.raises(ValidationError, match="healthy_threshold"):
            HealthCheckArgs(healthy_threshold=0).validate()

    def test_negative_cpu(self):
        """Test that cpu cannot be negative."""
        with pytest.raises(ValidationError, match="cpu"):
            ServiceConfig(cpu=-1).validate()

    def test_sidecar_requires_image(self):
        """Test that a sidecar needs an image."""
        with pytest.raises(ValidationError):
            SidecarConfig(port="80").validate()

    def test_workload_requires_name(self):
        """Test that a workload without a name is invalid."""
        with pytest.raises(ValidationError, match="name"):
            Workload(type=BACKEND_SERVICE).validate()

    def test_workload_type_must_be_supported(self):
        """Test that the workload type is checked."""
        with pytest.raises(ValidationError, match="type"):
            Workload(name="api", type="Static Site").validate()

    def test_only_declared_types_validate(self):
        """Test the static validation capability flags."""
        assert ImageConfig.validates is True
        assert RoutingRule.validates is False


class TestUnmarshalWorkload:
    """Tests for unmarshal_workload."""

    def test_decodes_manifest(self, sample_manifest_data):
        """Test that a complete manifest decodes."""
        workload = unmarshal_workload(sample_manifest_data)

        assert workload.type == "Load Balanced Web Service"
        assert workload.config.http.health_check_path() == "/_health"
        assert workload.config.image.port == 8080

    def test_unsupported_type_raises(self, sample_manifest_data):
        """Test that an unknown workload type is rejected."""
        sample_manifest_data["type"] = "Request-Driven Web Service"

        with pytest.raises(MalformedInputError, match="not supported"):
            unmarshal_workload(sample_manifest_data)
