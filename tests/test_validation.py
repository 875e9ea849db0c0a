"""
Tests for manifest validation module.

This module tests the validation walker that checks the effective
configuration of a workload for each environment.
"""

from __future__ import annotations

from appmanifest.manifest.decode import decode_record
from appmanifest.manifest.workload import ServiceConfig, Workload
from appmanifest.validation import collect_errors, validate_manifest, validate_workload


def _workload(data) -> Workload:
    return decode_record(Workload, data)


class TestCollectErrors:
    """Tests for the depth-first validation walk."""

    def test_valid_section_has_no_errors(self):
        """Test that a complete service section passes."""
        config = decode_record(ServiceConfig, {"image": {"location": "nginx"}})

        assert collect_errors(config) == []

    def test_errors_are_prefixed_with_path(self):
        """Test that nested errors carry their section path."""
        config = decode_record(
            ServiceConfig,
            {"image": {"location": "nginx"}, "count": {"range": {"min": 10, "max": 2}}},
        )

        assert collect_errors(config) == [
            "count.range: min value 10 cannot be larger than max value 2"
        ]

    def test_dict_values_are_walked(self):
        """Test that records inside mappings are validated."""
        config = decode_record(
            ServiceConfig,
            {"image": {"location": "nginx"}, "sidecars": {"proxy": {"port": "80"}}},
        )

        assert collect_errors(config) == ["sidecars.proxy: image must be specified"]


class TestValidateWorkload:
    """Tests for validate_workload function."""

    def test_valid_manifest(self, sample_manifest_data):
        """Test that the sample manifest is valid for every environment."""
        result = validate_workload(_workload(sample_manifest_data))

        assert result.status == "valid"
        assert result.errors == []
        assert result.warnings == []
        assert result.environment is None

    def test_missing_image(self, sample_manifest_data):
        """Test that an image without build or location is reported once per target."""
        del sample_manifest_data["image"]
        sample_manifest_data["environments"] = {}

        result = validate_workload(_workload(sample_manifest_data))

        assert result.status == "invalid"
        assert result.errors == ["image: one of build or location must be specified"]

    def test_environment_errors_are_prefixed(self, sample_manifest_data):
        """Test that errors in an environment carry its name."""
        sample_manifest_data["environments"]["prod"]["memory"] = -1

        result = validate_workload(_workload(sample_manifest_data))

        assert result.status == "invalid"
        assert result.errors == [
            "environments.prod: memory must not be negative, got -1"
        ]

    def test_single_environment_is_not_prefixed(self, sample_manifest_data):
        """Test that validating one environment reports plain paths."""
        sample_manifest_data["environments"]["prod"]["memory"] = -1

        result = validate_workload(_workload(sample_manifest_data), "prod")

        assert result.errors == ["memory must not be negative, got -1"]
        assert result.environment == "prod"

    def test_unknown_environment_warns(self, sample_manifest_data):
        """Test that an environment without overrides produces a warning."""
        result = validate_workload(_workload(sample_manifest_data), "staging")

        assert result.status == "valid"
        assert len(result.warnings) == 1
        assert "staging" in result.warnings[0]

    def test_merge_conflict_is_an_error(self, sample_manifest_data):
        """Test that an environment that cannot be merged is reported."""
        sample_manifest_data["environments"]["prod"]["image"] = {
            "build": "Dockerfile",
            "location": "nginx",
        }

        result = validate_workload(_workload(sample_manifest_data))

        assert result.status == "invalid"
        assert len(result.errors) == 1
        assert "'prod'" in result.errors[0]

    def test_workload_rules(self, sample_manifest_data):
        """Test that name and type are checked."""
        sample_manifest_data["name"] = ""
        sample_manifest_data["environments"] = {}

        result = validate_workload(_workload(sample_manifest_data))

        assert result.errors == ["name must be specified"]


class TestValidateManifest:
    """Tests for validate_manifest function."""

    def test_valid_file(self, create_yaml_file, sample_manifest_data):
        """Test that a valid manifest file passes."""
        path = create_yaml_file("manifest.yml", sample_manifest_data)

        result = validate_manifest(path, app_name="shop", lookup={}.get)

        assert result.status == "valid"
        assert result.manifest_path == str(path)

    def test_missing_file(self, tmp_test_dir):
        """Test that a missing file is reported, not raised."""
        result = validate_manifest(tmp_test_dir / "missing.yml", app_name="shop")

        assert result.status == "invalid"
        assert "not found" in result.errors[0]

    def test_decode_error_is_reported(self, tmp_test_dir):
        """Test that malformed values are reported as errors."""
        path = tmp_test_dir / "manifest.yml"
        path.write_text("name: api\ntype: Backend Service\ncount:\n  range: abc\n")

        result = validate_manifest(path, app_name="shop", lookup={}.get)

        assert result.status == "invalid"
        assert "count.range" in result.errors[0]

    def test_interpolation_error_is_reported(self, tmp_test_dir):
        """Test that undefined variables are reported as errors."""
        path = tmp_test_dir / "manifest.yml"
        path.write_text("name: api\nimage:\n  location: ${REPO}\n")

        result = validate_manifest(path, app_name="shop", lookup={}.get)

        assert result.status == "invalid"
        assert "REPO" in result.errors[0]

    def test_environment_name_is_interpolated_per_environment(self, tmp_test_dir):
        """Test that each environment sees its own COPILOT_ENVIRONMENT_NAME."""
        path = tmp_test_dir / "manifest.yml"
        path.write_text(
            "name: api\n"
            "type: Backend Service\n"
            "image:\n"
            "  location: repo:${COPILOT_ENVIRONMENT_NAME}\n"
            "environments:\n"
            "  test:\n"
            "    cpu: 512\n"
        )

        result = validate_manifest(path, app_name="shop", lookup={}.get)

        assert result.status == "valid"
        assert result.errors == []
        assert "COPILOT_ENVIRONMENT_NAME" in result.warnings[0]

    def test_environment_values_come_from_its_own_interpolation(self, tmp_test_dir):
        """Test that an environment is checked with values substituted for it."""
        path = tmp_test_dir / "manifest.yml"
        path.write_text(
            "name: api\n"
            "type: Backend Service\n"
            "image:\n"
            "  location: repo:latest\n"
            "cpu: ${CPU}\n"
            "environments:\n"
            "  test:\n"
            "    memory: 512\n"
        )

        result = validate_manifest(path, app_name="shop", lookup={"CPU": "256"}.get)

        assert result.status == "valid"
        assert result.warnings == []

    def test_environment_name_without_environments_is_an_error(self, tmp_test_dir):
        """Test that the base cannot rely on an environment name nobody sets."""
        path = tmp_test_dir / "manifest.yml"
        path.write_text(
            "name: api\n"
            "type: Backend Service\n"
            "image:\n"
            "  location: repo:${COPILOT_ENVIRONMENT_NAME}\n"
        )

        result = validate_manifest(path, app_name="shop", lookup={}.get)

        assert result.status == "invalid"
        assert "COPILOT_ENVIRONMENT_NAME" in result.errors[0]
