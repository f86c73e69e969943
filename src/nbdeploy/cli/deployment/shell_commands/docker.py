"""Local cluster image loading.

Images built by ``make docker-build`` only exist in the host's image
store. Kind and Minikube nodes run their own container runtimes, so every
freshly built component image is copied into the cluster before its
manifests are applied.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class DockerCommands:
    """Copies host images into local cluster runtimes.

    Provides operations for:
    - Loading an image into every node of a Kind cluster
    - Loading an image into Minikube
    - Listing Kind clusters (for load failure diagnostics)
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize image loading commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    def minikube_load_image(self, image_tag: str) -> CommandResult:
        """Copy ``image_tag`` into the Minikube node.

        Args:
            image_tag: ``<name>:<tag>`` present in the host image store

        Returns:
            CommandResult with load status
        """
        return self._runner.run(["minikube", "image", "load", image_tag])

    def kind_load_image(
        self, image_tag: str, cluster_name: str = "kind"
    ) -> CommandResult:
        """Copy ``image_tag`` onto the nodes of a Kind cluster.

        Args:
            image_tag: ``<name>:<tag>`` present in the host image store
            cluster_name: Kind cluster name, as passed to ``kind --name``

        Returns:
            CommandResult with load status
        """
        return self._runner.run(
            ["kind", "load", "docker-image", image_tag, "--name", cluster_name]
        )

    def kind_clusters(self) -> list[str]:
        """Names of the Kind clusters on this host (empty on failure)."""
        result = self._runner.run(["kind", "get", "clusters"])
        if not result.success:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]
