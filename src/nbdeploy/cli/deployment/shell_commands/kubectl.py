"""Kubectl command abstractions.

This module provides the kubectl operations the deployment workflow
needs: cluster connectivity checks, kustomize rendering, applying a
rendered manifest stream and waiting for rollouts.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class KubectlCommands:
    """Kubectl-related shell commands.

    Provides operations for:
    - Cluster context detection
    - Rendering kustomize trees into manifest streams
    - Applying manifest streams
    - Waiting for deployments to become available
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize kubectl commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Cluster Context
    # =========================================================================

    def cluster_info(self) -> CommandResult:
        """Check that the API server of the current context is reachable."""
        return self._runner.run(["kubectl", "cluster-info"])

    def get_current_context(self) -> str:
        """Get the current kubectl context name."""
        result = self._runner.run(["kubectl", "config", "current-context"])
        return result.stdout.strip() if result.success else "unknown"

    def is_minikube_context(self) -> bool:
        """Check if the current kubectl context is Minikube."""
        return "minikube" in self.get_current_context().lower()

    # =========================================================================
    # Render / Apply
    # =========================================================================

    def kustomize(self, overlay_path: Path) -> CommandResult:
        """Render a kustomize tree (base + overlay + patches).

        Args:
            overlay_path: Directory containing a kustomization.yaml

        Returns:
            CommandResult whose stdout is the flat manifest stream
        """
        return self._runner.run(["kubectl", "kustomize", str(overlay_path)])

    def apply_stream(self, manifest_stream: str) -> CommandResult:
        """Apply a rendered manifest stream via stdin.

        Args:
            manifest_stream: Multi-document YAML text

        Returns:
            CommandResult with apply status
        """
        return self._runner.run(
            ["kubectl", "apply", "-f", "-"], input_data=manifest_stream
        )

    # =========================================================================
    # Rollout
    # =========================================================================

    def wait_for_deployments(
        self,
        namespace: str,
        *,
        timeout: str = "300s",
    ) -> CommandResult:
        """Wait for every deployment in a namespace to become Available."""
        return self._runner.run(
            [
                "kubectl",
                "wait",
                "--for=condition=Available",
                "deployment",
                "--all",
                "-n",
                namespace,
                f"--timeout={timeout}",
            ]
        )
