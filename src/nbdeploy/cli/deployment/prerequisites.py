"""Pre-flight checks for a deployment run."""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING

from .constants import DeploymentConstants
from .errors import MissingPrerequisite

if TYPE_CHECKING:
    from ..shared.console import CLIConsole
    from .shell_commands import ShellCommands


def check_prerequisites(
    commands: ShellCommands,
    console: CLIConsole,
    constants: DeploymentConstants | None = None,
) -> str:
    """Verify required tools are installed and the cluster is reachable.

    Args:
        commands: Shell command executor
        console: CLI console for output
        constants: Optional deployment constants (uses defaults if not provided)

    Returns:
        The current kubectl context

    Raises:
        MissingPrerequisite: If a tool is missing or the cluster is unreachable
    """
    constants = constants or DeploymentConstants()
    console.info("Checking prerequisites...")

    for tool in constants.REQUIRED_TOOLS:
        if shutil.which(tool) is None:
            raise MissingPrerequisite(
                f"{tool} is not installed or not in PATH",
                details=f"Install {tool} and make sure it is on your PATH.",
            )

    if not commands.kubectl.cluster_info().success:
        raise MissingPrerequisite(
            "Cannot connect to Kubernetes cluster",
            details="Please check your kubeconfig and current context.",
        )

    context = commands.kubectl.get_current_context()
    console.ok(f"Connected to Kubernetes cluster: {context}")
    return context
