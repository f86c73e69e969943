"""Component image building and cluster loading.

This module handles the image side of a component deployment:
- Detecting the build platform from the host architecture
- Building the image with an ordered list of make invocation strategies
- Loading the built image into the local cluster (Kind, Minikube)
"""

from __future__ import annotations

import platform as host_platform
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Generic, TypeVar

from loguru import logger

from ..constants import DeploymentConstants
from ..errors import BuildFailed, StageFailed
from ..shell_commands import CommandResult

if TYPE_CHECKING:
    from ...shared.console import CLIConsole
    from ..shell_commands import ShellCommands
    from .image_reference import ImageReference

T = TypeVar("T")

PLATFORM_BY_MACHINE: dict[str, str] = {
    "arm64": "linux/arm64",
    "aarch64": "linux/arm64",
    "x86_64": "linux/amd64",
    "amd64": "linux/amd64",
}
DEFAULT_PLATFORM = "linux/amd64"


def detect_platform(machine: str | None = None) -> str:
    """Map the host processor architecture to a container platform.

    Args:
        machine: Architecture name (defaults to ``platform.machine()``)

    Returns:
        ``linux/arm64`` or ``linux/amd64``; unknown architectures fall back
        to ``linux/amd64`` with a warning
    """
    arch = (host_platform.machine() if machine is None else machine).lower()
    detected = PLATFORM_BY_MACHINE.get(arch)
    if detected is None:
        logger.warning(
            f"Unknown architecture: {arch or 'unknown'}, defaulting to {DEFAULT_PLATFORM}"
        )
        return DEFAULT_PLATFORM
    return detected


@dataclass(frozen=True)
class BuildStrategy:
    """One convention for passing the target platform to ``make docker-build``.

    Attributes:
        label: Human-readable name shown in progress output
        variable: Make variable carrying the platform, or None to pass nothing
        value_format: Format string for the variable's value
    """

    label: str
    variable: str | None = None
    value_format: str = "{platform}"

    def variables(self, platform: str) -> dict[str, str]:
        """Make variables for this strategy on ``platform``."""
        if self.variable is None:
            return {}
        return {self.variable: self.value_format.format(platform=platform)}


# Tried in order; component Makefiles accept different conventions
BUILD_STRATEGIES: tuple[BuildStrategy, ...] = (
    BuildStrategy("architecture flag", "ARCH"),
    BuildStrategy("platform flag", "PLATFORM"),
    BuildStrategy("build arguments", "DOCKER_BUILD_ARGS", "--platform {platform}"),
    BuildStrategy("builder default"),
)


@dataclass
class StrategyOutcome(Generic[T]):
    """Result of trying candidates until one succeeds.

    Attributes:
        winner: First candidate whose attempt succeeded, or None
        attempts: Every (candidate, result) pair tried, in order
    """

    winner: T | None = None
    attempts: list[tuple[T, CommandResult]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.winner is not None


def first_success(
    candidates: Iterable[T],
    attempt: Callable[[T], CommandResult],
) -> StrategyOutcome[T]:
    """Run ``attempt`` for each candidate until one succeeds.

    Failed attempts are recorded and the next candidate is tried; nothing
    after the first success is attempted.
    """
    outcome: StrategyOutcome[T] = StrategyOutcome()
    for candidate in candidates:
        result = attempt(candidate)
        outcome.attempts.append((candidate, result))
        if result.success:
            outcome.winner = candidate
            break
    return outcome


class ImageBuilder:
    """Builds component images and loads them into the cluster runtime.

    Attributes:
        commands: Shell command executor
        console: CLI console for output
        strategies: Build strategies, in priority order
        kind_cluster: Kind cluster name images are loaded into
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        *,
        strategies: Iterable[BuildStrategy] = BUILD_STRATEGIES,
        kind_cluster: str | None = None,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the image builder.

        Args:
            commands: Shell command executor
            console: CLI console for output
            strategies: Ordered build strategies (defaults to BUILD_STRATEGIES)
            kind_cluster: Kind cluster name (defaults to "kind")
            constants: Optional deployment constants (uses defaults if not provided)
        """
        self.commands = commands
        self.console = console
        self.strategies = tuple(strategies)
        self.constants = constants or DeploymentConstants()
        self.kind_cluster = kind_cluster or self.constants.DEFAULT_KIND_CLUSTER

    def build(
        self, component_dir: Path, reference: ImageReference, platform: str
    ) -> BuildStrategy:
        """Build ``reference`` from ``component_dir`` for ``platform``.

        Every attempt passes ``IMG`` and ``TAG`` so a successful build leaves
        exactly ``<name>:<tag>`` in the local image store.

        Returns:
            The strategy that succeeded

        Raises:
            BuildFailed: If every strategy failed
        """
        base_variables = {"IMG": reference.name, "TAG": reference.tag}

        def attempt(strategy: BuildStrategy) -> CommandResult:
            variables = {**base_variables, **strategy.variables(platform)}
            with self.console.status(
                f"Building {reference} ({strategy.label}, platform: {platform})..."
            ):
                result = self.commands.make.docker_build(component_dir, variables)
            if not result.success:
                logger.debug(
                    f"Build of {reference} with {strategy.label} failed "
                    f"(exit {result.returncode})"
                )
                self.console.detail(
                    f"Build with {strategy.label} failed, trying next strategy"
                )
            return result

        outcome = first_success(self.strategies, attempt)
        if outcome.winner is None:
            last_output = outcome.attempts[-1][1].output_tail() if outcome.attempts else ""
            raise BuildFailed(
                f"Failed to build Docker image {reference}",
                details=(
                    f"Tried: {', '.join(s.label for s, _ in outcome.attempts)}\n"
                    f"{last_output}"
                ).rstrip(),
            )

        self.console.ok(f"Built {reference} using {outcome.winner.label}")
        return outcome.winner

    def stage(self, reference: ImageReference) -> None:
        """Load a built image into the local cluster runtime.

        Minikube contexts use ``minikube image load``; everything else is
        treated as Kind.

        Raises:
            StageFailed: If the image could not be loaded
        """
        image = str(reference)
        if self.commands.kubectl.is_minikube_context():
            runtime = "Minikube"
            result = self.commands.docker.minikube_load_image(image)
        else:
            runtime = f"Kind cluster '{self.kind_cluster}'"
            result = self.commands.docker.kind_load_image(image, self.kind_cluster)

        if not result.success:
            details = result.output_tail()
            if runtime != "Minikube":
                clusters = self.commands.docker.kind_clusters()
                details += (
                    f"\nAvailable Kind clusters: {', '.join(clusters)}"
                    if clusters
                    else "\nNo Kind clusters found; create one with 'kind create cluster'"
                )
                details += "\nSet KIND_CLUSTER_NAME to load into a different cluster."
            raise StageFailed(
                f"Failed to load Docker image into {runtime}: {image}",
                details=details.strip() or None,
            )
        self.console.ok(f"Loaded {image} into {runtime}")
