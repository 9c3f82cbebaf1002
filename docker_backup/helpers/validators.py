################################################################################
# DOCKER-BACKUP
#
# @file:        validators.py
# @module:      docker_backup.helpers.validators
# @description: Validation of volume names and image identifiers.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
################################################################################

"""
Resource identifier validation.

A ResourceIdentifier can only be built from a valid value, so code that
holds one never has to re-check it. Validation is a pure function of the
string: no Docker calls, no filesystem access.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from ..errors import ValidationError, ValidationReason

VOLUME_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
IMAGE_DIGEST_PATTERN = re.compile(r"^(sha256:)?[a-f0-9]{12,64}$", re.IGNORECASE)

# [registry[:port]/]component[/component...][:tag][@sha256:digest]
_REGISTRY = r"(?:[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*(?::[0-9]+)?/)?"
_COMPONENT = r"[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*"
_TAG = r"(?::[A-Za-z0-9_][A-Za-z0-9_.-]{0,127})?"
_DIGEST = r"(?:@sha256:[A-Fa-f0-9]{64})?"
IMAGE_REFERENCE_PATTERN = re.compile(
    rf"^{_REGISTRY}{_COMPONENT}(?:/{_COMPONENT})*{_TAG}{_DIGEST}$"
)


class ResourceKind(str, Enum):
    VOLUME = "volume"
    IMAGE = "image"


@dataclass(frozen=True)
class ResourceIdentifier:
    value: str
    kind: ResourceKind

    def __post_init__(self):
        if not self.value:
            raise ValidationError(
                f"{self.kind.value.capitalize()} name cannot be empty",
                ValidationReason.EMPTY_NAME,
                self.value,
            )
        if self.kind is ResourceKind.VOLUME:
            valid = VOLUME_NAME_PATTERN.fullmatch(self.value) is not None
            hint = "Volume names may only contain letters, digits, '.', '_' and '-'."
        else:
            valid = (
                IMAGE_DIGEST_PATTERN.fullmatch(self.value) is not None
                or IMAGE_REFERENCE_PATTERN.fullmatch(self.value) is not None
            )
            hint = "Expected repository[:tag] or an image ID / sha256 hash."
        if not valid:
            raise ValidationError(
                f'Invalid {self.kind.value} name "{self.value}". {hint}',
                ValidationReason.INVALID_FORMAT,
                self.value,
            )

    @property
    def is_digest(self) -> bool:
        return (
            self.kind is ResourceKind.IMAGE
            and IMAGE_DIGEST_PATTERN.fullmatch(self.value) is not None
        )

    def __str__(self) -> str:
        return self.value


def validate_volume_name(name: str) -> ResourceIdentifier:
    return ResourceIdentifier(name or "", ResourceKind.VOLUME)


def validate_image_id(reference: str) -> ResourceIdentifier:
    return ResourceIdentifier(reference or "", ResourceKind.IMAGE)
