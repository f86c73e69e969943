"""Deployment tag resolution for component source trees."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from ..constants import DeploymentConstants

if TYPE_CHECKING:
    from ..shell_commands import GitCommands


class TagResolver:
    """Computes the image tag a component is built and pinned with.

    Priority:
    1. A fixed override (``IMAGE_TAG``)
    2. The nearest version-control description of the source tree
       (exact tag, or ``<tag>-<count>-g<hash>``, plus ``-dirty``)
    3. ``latest``

    Resolution never fails: a missing git binary, a directory outside a
    repository or a description that is not a valid tag all degrade to
    the fallback.
    """

    def __init__(
        self,
        git: GitCommands,
        override: str | None = None,
        constants: DeploymentConstants | None = None,
    ) -> None:
        self.git = git
        self.override = override
        self.constants = constants or DeploymentConstants()

    def resolve(self, source_dir: Path) -> str:
        """Return the deployment tag for ``source_dir``."""
        if self.override:
            return self.override

        description = self.git.describe(source_dir)
        if description is None:
            logger.warning(
                f"No version information for {source_dir}, "
                f"using '{self.constants.FALLBACK_TAG}' tag"
            )
            return self.constants.FALLBACK_TAG

        if not self.constants.IMAGE_TAG_PATTERN.match(description):
            logger.warning(
                f"git describe output {description!r} is not a valid image tag, "
                f"using '{self.constants.FALLBACK_TAG}' tag"
            )
            return self.constants.FALLBACK_TAG

        return description
