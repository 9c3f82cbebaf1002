"""
Tests for resource identifier validation.
"""

import pytest

from docker_backup.errors import ValidationError, ValidationReason
from docker_backup.helpers.validators import (
    ResourceIdentifier,
    ResourceKind,
    validate_image_id,
    validate_volume_name,
)


@pytest.mark.unit
class TestVolumeNames:

    @pytest.mark.parametrize("name", ["app-data", "db_1", "my.volume", "A", "0abc", "x" * 200])
    def test_valid_names(self, name):
        identifier = validate_volume_name(name)

        assert identifier.value == name
        assert identifier.kind is ResourceKind.VOLUME
        assert str(identifier) == name
        assert not identifier.is_digest

    def test_empty_name(self):
        with pytest.raises(ValidationError) as exc:
            validate_volume_name("")

        assert exc.value.reason is ValidationReason.EMPTY_NAME
        assert "cannot be empty" in str(exc.value)

    def test_none_counts_as_empty(self):
        with pytest.raises(ValidationError) as exc:
            validate_volume_name(None)
        assert exc.value.reason is ValidationReason.EMPTY_NAME

    @pytest.mark.parametrize("name", ["my volume", "a/b", "vol:1", "data$", "name\n", "../etc"])
    def test_invalid_names_report_value(self, name):
        with pytest.raises(ValidationError) as exc:
            validate_volume_name(name)

        assert exc.value.reason is ValidationReason.INVALID_FORMAT
        assert exc.value.value == name
        assert name in str(exc.value)


@pytest.mark.unit
class TestImageIdentifiers:

    @pytest.mark.parametrize(
        "reference",
        [
            "nginx",
            "nginx:latest",
            "library/nginx:1.25-alpine",
            "docker.io/library/nginx:latest",
            "registry.example.com:5000/team/app:v1.2.3",
            "ghcr.io/org/tool@sha256:" + "a" * 64,
            "my_app__worker:dev",
        ],
    )
    def test_valid_references(self, reference):
        identifier = validate_image_id(reference)

        assert identifier.kind is ResourceKind.IMAGE
        assert identifier.value == reference

    @pytest.mark.parametrize(
        "digest",
        ["0123456789ab", "sha256:" + "f" * 64, "ABCDEF012345", "sha256:0123456789AB"],
    )
    def test_content_hashes(self, digest):
        identifier = validate_image_id(digest)
        assert identifier.is_digest

    def test_reference_is_not_a_digest(self):
        assert not validate_image_id("nginx:latest").is_digest

    @pytest.mark.parametrize(
        "reference",
        ["Nginx:latest", "nginx:", ":latest", "nginx latest", "sha256:", "-nginx", "nginx//app"],
    )
    def test_invalid_references(self, reference):
        with pytest.raises(ValidationError) as exc:
            validate_image_id(reference)

        assert exc.value.reason is ValidationReason.INVALID_FORMAT
        assert reference in str(exc.value)

    def test_empty_reference(self):
        with pytest.raises(ValidationError) as exc:
            validate_image_id("")

        assert exc.value.reason is ValidationReason.EMPTY_NAME
        assert str(exc.value) == "Image name cannot be empty"

    def test_identifier_cannot_be_built_invalid(self):
        with pytest.raises(ValidationError):
            ResourceIdentifier("bad name", ResourceKind.VOLUME)
