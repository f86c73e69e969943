"""Deployment error taxonomy.

Every failure the workflow reports is a DeploymentError carrying a short
message and optional recovery details. Errors are grouped by how they are
surfaced:

- InputError: bad selection, image name/tag grammar or settings. Raised
  before anything on disk or in the cluster is touched.
- ResourceMissingError: a descriptor, document, directory or tool that the
  workflow needs is absent. Aborts the component and the run.
- ExternalToolError: a build, stage, render, apply, clone or write step
  failed. Only builds are retried, through the ordered strategy list.

Tag resolution never raises; it degrades to a default tag instead.
"""

from __future__ import annotations


class DeploymentError(Exception):
    """Raised when a deployment operation fails."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


# =============================================================================
# Categories
# =============================================================================


class InputError(DeploymentError):
    """Invalid user or document input; surfaced before any mutation."""


class ResourceMissingError(DeploymentError):
    """A file, directory or tool required by a step does not exist."""


class ExternalToolError(DeploymentError):
    """An external command (make, kind, kubectl, git) or write step failed."""


# =============================================================================
# Input errors
# =============================================================================


class UnknownIdentifier(InputError):
    """A selection entry is not part of its catalog."""

    def __init__(self, identifier: str, valid: list[str]):
        self.identifier = identifier
        self.valid = valid
        super().__init__(
            f"Invalid item: '{identifier}'",
            details=f"Valid items are: {', '.join(valid)}",
        )


class EmptySelection(InputError):
    """A selection was given entries but none of them names an identifier."""

    def __init__(self, raw: str, valid: list[str]):
        self.raw = raw
        super().__init__(
            "No valid items specified",
            details=f"Got {raw!r}; valid items are: {', '.join(valid)}",
        )


class InvalidImageName(InputError):
    """A declared image name does not match the image name grammar."""


class InvalidImageReference(InputError):
    """An image name/tag pair does not match the reference grammar."""


class InvalidDocument(InputError):
    """A deployment configuration document cannot be patched."""


class InvalidSetting(InputError):
    """An environment override has an invalid value."""


# =============================================================================
# Missing resources
# =============================================================================


class DescriptorNotFound(ResourceMissingError):
    """A component's build descriptor (Makefile) does not exist."""


class ImageKeyMissing(ResourceMissingError):
    """A build descriptor declares no IMG variable."""


class DocumentNotFound(ResourceMissingError):
    """A deployment configuration document does not exist."""


class ComponentNotFound(ResourceMissingError):
    """A component's source or overlay directory does not exist."""


class RepositoryInvalid(ResourceMissingError):
    """A repository source is missing or lacks the expected layout."""


class MissingPrerequisite(ResourceMissingError):
    """A required tool is not installed or the cluster is unreachable."""


# =============================================================================
# External tool failures
# =============================================================================


class BuildFailed(ExternalToolError):
    """Every build strategy for a component failed."""


class StageFailed(ExternalToolError):
    """A built image could not be loaded into the cluster runtime."""


class RenderFailed(ExternalToolError):
    """A kustomize tree could not be rendered into manifests."""


class ApplyFailed(ExternalToolError):
    """Rendered manifests could not be applied or did not become ready."""


class WriteFailed(ExternalToolError):
    """A patched document could not be written atomically."""


class CloneFailed(ExternalToolError):
    """A remote repository could not be cloned."""
