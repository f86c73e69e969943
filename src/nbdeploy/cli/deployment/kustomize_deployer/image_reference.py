"""Image references and build-descriptor image resolution.

An ImageReference pairs a registry path with a tag. The declared name of a
component's image comes from the ``IMG`` variable of its Makefile, e.g.::

    IMG ?= ghcr.io/kubeflow/notebooks/notebook-controller
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from ..constants import DeploymentConstants
from ..errors import (
    DescriptorNotFound,
    ImageKeyMissing,
    InvalidImageName,
    InvalidImageReference,
)

_CONSTANTS = DeploymentConstants()

# IMG = value / IMG ?= value, capturing the raw value
_IMG_ASSIGNMENT = re.compile(r"^IMG\s*\??=\s*(?P<value>.*)$")


@dataclass(frozen=True)
class ImageReference:
    """An image name (without tag) and the tag it is pinned to.

    Instances are validated on construction and never mutated; a new value
    replaces an old pin.

    Attributes:
        name: Image path such as ``ghcr.io/kubeflow/notebooks/jupyter-web-app``
        tag: Tag such as ``v1.9.0-3-g1a2b3c4-dirty``
    """

    name: str
    tag: str

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check the name and tag against the reference grammar.

        Raises:
            InvalidImageReference: If either part is malformed
        """
        problems = []
        if not isinstance(self.name, str) or not _CONSTANTS.IMAGE_NAME_PATTERN.match(
            self.name
        ):
            problems.append(f"name {self.name!r} must match [A-Za-z0-9._/-]+")
        if not isinstance(self.tag, str) or not _CONSTANTS.IMAGE_TAG_PATTERN.match(
            self.tag
        ):
            problems.append(
                f"tag {self.tag!r} must be 1-128 characters of [A-Za-z0-9._-]"
            )
        if problems:
            raise InvalidImageReference(
                f"Invalid image reference: {self.name}:{self.tag}",
                details="\n".join(problems),
            )

    def __str__(self) -> str:
        return f"{self.name}:{self.tag}"


def strip_tag(image: str) -> str:
    """Remove a ``:tag`` suffix from an image string, if present.

    A colon that belongs to a registry host (``host:5000/repo``) is not a
    tag separator and is kept.
    """
    name, sep, tag = image.rpartition(":")
    if sep and "/" not in tag:
        return name
    return image


def resolve_image_name(descriptor: Path) -> str:
    """Extract the declared image name from a component Makefile.

    The first ``IMG = value`` or ``IMG ?= value`` line wins. Trailing make
    comments and any tag suffix are removed.

    Args:
        descriptor: Path to the Makefile

    Returns:
        The image name, without tag

    Raises:
        DescriptorNotFound: If the Makefile does not exist or cannot be read
        ImageKeyMissing: If no IMG assignment is present
        InvalidImageName: If the value does not match the name grammar
    """
    if not descriptor.is_file():
        raise DescriptorNotFound(f"Makefile not found: {descriptor}")

    try:
        content = descriptor.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DescriptorNotFound(
            f"Cannot read Makefile: {descriptor}", details=str(e)
        ) from e

    for line in content.splitlines():
        match = _IMG_ASSIGNMENT.match(line)
        if match is None:
            continue
        value = match.group("value").split("#", 1)[0].strip()
        name = strip_tag(value)
        if not _CONSTANTS.IMAGE_NAME_PATTERN.match(name):
            raise InvalidImageName(
                f"Invalid Docker image name format: {value!r}",
                details=f"Declared by IMG in {descriptor}",
            )
        return name

    raise ImageKeyMissing(f"Could not find IMG variable in Makefile: {descriptor}")
