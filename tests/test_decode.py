"""
Tests for appmanifest.manifest.decode and appmanifest.manifest.record.

Tests structural decoding and serialization including:
- Scalar coercion rules
- Record decoding with keys, defaults and inline sections
- Shape mismatch errors carrying field paths
- Serialization that drops unset fields
"""

from __future__ import annotations

import pytest

from appmanifest.exceptions import ShapeMismatchError
from appmanifest.manifest.decode import (
    decode_record,
    decode_value,
    dump_yaml,
    encode_value,
)
from appmanifest.manifest.record import is_zero, record_fields
from appmanifest.manifest.workload import (
    AdvancedCount,
    ServiceConfig,
    SidecarConfig,
    Workload,
)


class TestScalarDecoding:
    """Tests for decode_value on builtin scalar types."""

    def test_string_accepts_scalars(self):
        """Test that str accepts numbers and booleans."""
        assert decode_value(str, 80) == "80"
        assert decode_value(str, True) == "true"
        assert decode_value(str, "abc") == "abc"

    def test_int_rejects_bool(self):
        """Test that a YAML boolean is not an int."""
        with pytest.raises(ShapeMismatchError):
            decode_value(int, True)

    def test_int_rejects_string(self):
        """Test that a string is not an int and the path is reported."""
        with pytest.raises(ShapeMismatchError, match=r"^cpu: "):
            decode_value(int, "256", "cpu")

    def test_float_accepts_int(self):
        """Test that float accepts whole numbers."""
        assert decode_value(float, 1) == 1.0

    def test_bool_is_strict(self):
        """Test that bool rejects strings."""
        with pytest.raises(ShapeMismatchError):
            decode_value(bool, "yes please")

    def test_string_rejects_sequence(self):
        """Test that a sequence is a shape mismatch for str."""
        with pytest.raises(ShapeMismatchError):
            decode_value(str, ["a"])

    def test_none_decodes_to_none(self):
        """Test that YAML null passes through as None."""
        assert decode_value(int, None) is None

    def test_unsupported_type_raises_type_error(self):
        """Test that undeclared field types are a programming error."""
        with pytest.raises(TypeError):
            decode_value(set, [1])


class TestCollectionDecoding:
    """Tests for list and dict decoding."""

    def test_list_decodes_elements(self):
        """Test that list[str] coerces each element."""
        assert decode_value(list[str], ["a", 1]) == ["a", "1"]

    def test_dict_decodes_values(self):
        """Test that dict[str, str] coerces values."""
        assert decode_value(dict[str, str], {"PORT": 80}) == {"PORT": "80"}

    def test_list_rejects_scalar(self):
        """Test that a scalar is a shape mismatch for a list."""
        with pytest.raises(ShapeMismatchError):
            decode_value(list[str], "a")


class TestRecordDecoding:
    """Tests for decode_record."""

    def test_known_keys_are_decoded(self):
        """Test that declared keys populate fields."""
        config = decode_record(ServiceConfig, {"cpu": 256, "memory": 512})

        assert config.cpu == 256
        assert config.memory == 512

    def test_unknown_keys_are_ignored(self):
        """Test that undeclared keys do not raise."""
        config = decode_record(ServiceConfig, {"cpu": 256, "mystery": True})

        assert config.cpu == 256

    def test_null_uses_default(self):
        """Test that a null value falls back to the field default."""
        config = decode_record(ServiceConfig, {"variables": None})

        assert config.variables == {}

    def test_yaml_key_differs_from_attribute(self):
        """Test that the 'exec' key maps to execute_command."""
        config = decode_record(ServiceConfig, {"exec": True})

        assert config.execute_command.is_plain()
        assert config.execute_command.plain is True

    def test_inline_section_reads_parent_mapping(self, sample_manifest_data):
        """Test that Workload.config reads keys beside name and type."""
        workload = decode_record(Workload, sample_manifest_data)

        assert workload.name == "api"
        assert workload.config.cpu == 256
        assert workload.config.image.build.plain == "api/Dockerfile"
        assert set(workload.environments) == {"test", "prod"}
        assert workload.environments["prod"].cpu == 1024

    def test_nested_records_in_mapping(self):
        """Test that dict values decode into records."""
        config = decode_record(
            ServiceConfig, {"sidecars": {"nginx": {"image": "nginx", "port": 80}}}
        )

        assert config.sidecars["nginx"] == SidecarConfig(image="nginx", port="80")

    def test_non_mapping_raises(self):
        """Test that a record needs a mapping."""
        with pytest.raises(ShapeMismatchError):
            decode_record(ServiceConfig, ["cpu", 256])

    def test_nested_error_reports_path(self):
        """Test that errors carry the dotted path of the bad key."""
        with pytest.raises(ShapeMismatchError) as exc_info:
            decode_record(ServiceConfig, {"http": {"allowed_source_ips": "10.0.0.0/24"}})

        assert exc_info.value.path == "http.allowed_source_ips"


class TestFieldManifest:
    """Tests for record_fields and zero predicates."""

    def test_optional_fields_are_flagged(self):
        """Test that T | None annotations are optional and stripped."""
        specs = {spec.name: spec for spec in record_fields(AdvancedCount)}

        assert specs["spot"].optional is True
        assert specs["spot"].type is int
        assert specs["cpu_percentage"].key == "cpu_percentage"

    def test_default_returns_fresh_values(self):
        """Test that FieldSpec.default() builds a new default each time."""
        spec = {s.name: s for s in record_fields(ServiceConfig)}["variables"]

        assert spec.default() == {}
        assert spec.default() is not spec.default()

    def test_zero_predicates(self):
        """Test is_zero on scalars, records and optional fields."""
        assert is_zero(0)
        assert is_zero("")
        assert is_zero([])
        assert is_zero(ServiceConfig())
        assert not is_zero(ServiceConfig(cpu=1))
        assert not is_zero(AdvancedCount(spot=0))


class TestSerialization:
    """Tests for encode_value and dump_yaml."""

    def test_unset_fields_are_dropped(self):
        """Test that only set fields are serialized."""
        assert encode_value(ServiceConfig(cpu=256)) == {"cpu": 256}

    def test_optional_zero_is_kept(self):
        """Test that an explicit zero in an optional field is serialized."""
        assert encode_value(AdvancedCount(spot=0)) == {"spot": 0}

    def test_dump_yaml_flattens_inline_section(self):
        """Test that inline fields render beside the parent's keys."""
        workload = Workload(
            name="api",
            type="Backend Service",
            config=ServiceConfig(cpu=256),
        )

        assert dump_yaml(workload) == "name: api\ntype: Backend Service\ncpu: 256\n"

    def test_decoded_manifest_serializes_back(self, sample_manifest_data):
        """Test that decoding then encoding keeps the declared values."""
        workload = decode_record(Workload, sample_manifest_data)

        raw = encode_value(workload)

        assert raw["image"] == {"build": "api/Dockerfile", "port": 8080}
        assert raw["environments"]["prod"]["count"] == {
            "range": "2-10",
            "cpu_percentage": 70,
        }
