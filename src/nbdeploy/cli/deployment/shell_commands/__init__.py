"""Shell command abstractions for build and deployment operations.

This package provides a clean, well-documented interface for shell commands used
during deployment. It is organized into specialized modules for each tool:

- make: Component Makefile targets (docker-build, manifests)
- docker: Local images and loading them into Kind/Minikube
- kubectl: Rendering, applying and waiting on Kubernetes resources
- git: Version descriptions and repository clones

Usage:
    from nbdeploy.cli.deployment.shell_commands import ShellCommands

    commands = ShellCommands(project_root=Path("."))
    result = commands.kubectl.kustomize(Path("config/overlays/kubeflow"))
    if result.success:
        print(result.stdout)
"""

import shutil
from pathlib import Path

from .docker import DockerCommands
from .git import GitCommands
from .kubectl import KubectlCommands
from .make import MakeCommands
from .runner import CommandRunner
from .types import CommandResult


class ShellCommands:
    """Unified interface for all shell command operations.

    This class provides a facade over the specialized command modules,
    offering a single point of access for deployment operations while
    maintaining separation of concerns internally.

    Attributes:
        make: Makefile target commands
        docker: Docker-related commands
        kubectl: Kubernetes kubectl commands
        git: Git repository commands

    Example:
        >>> commands = ShellCommands(Path("."))
        >>> rendered = commands.kubectl.kustomize(Path("config/overlays/kubeflow"))
    """

    def __init__(self, project_root: Path) -> None:
        """Initialize the shell commands executor.

        Args:
            project_root: Path to the repository root directory.
                         Commands will be executed from this directory by default.
        """
        self._project_root = Path(project_root)
        self._runner = CommandRunner(self._project_root)

        # Initialize specialized command modules
        # Prefer GNU make where it is installed under its own name (macOS)
        make_executable = "gmake" if shutil.which("gmake") else "make"
        self.make = MakeCommands(self._runner, executable=make_executable)
        self.docker = DockerCommands(self._runner)
        self.kubectl = KubectlCommands(self._runner)
        self.git = GitCommands(self._runner)

    @property
    def project_root(self) -> Path:
        """Get the project root path."""
        return self._project_root

    @property
    def runner(self) -> CommandRunner:
        """Get the underlying command runner."""
        return self._runner


__all__ = [
    "ShellCommands",
    "CommandResult",
    # Specialized command classes for direct usage
    "MakeCommands",
    "DockerCommands",
    "KubectlCommands",
    "GitCommands",
    "CommandRunner",
]
