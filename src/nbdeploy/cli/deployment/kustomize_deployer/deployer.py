"""Per-component build → stage → pin → deploy orchestration.

This module provides the ComponentDeployer, which drives every selected
component through a strictly sequential state machine::

    PENDING → RESOLVING → BUILDING → STAGING → PATCHING → DEPLOYING → SUCCEEDED
                                                                    ↘ FAILED

Only BUILDING retries, through the image builder's ordered strategy list.
The first failing component stops the run: components already deployed
stay applied, later ones are never attempted.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from ..constants import Component
from ..errors import (
    ApplyFailed,
    ComponentNotFound,
    DeploymentError,
    DocumentNotFound,
    RenderFailed,
)
from .image_builder import ImageBuilder, detect_platform
from .image_reference import ImageReference, resolve_image_name
from .kustomize_patcher import KustomizationPatcher, PatchCase
from .manifest_stream import count_documents, pin_image_references
from .tag_resolver import TagResolver

if TYPE_CHECKING:
    from ...shared.console import CLIConsole
    from ..settings import DeploySettings
    from ..shell_commands import ShellCommands


class ComponentState(str, Enum):
    """Lifecycle states of one component within a run."""

    PENDING = "pending"
    RESOLVING = "resolving"
    BUILDING = "building"
    STAGING = "staging"
    PATCHING = "patching"
    DEPLOYING = "deploying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ComponentOutcome:
    """Progress and result of one component.

    Attributes:
        component: The catalog component
        state: Current (or final) state
        reference: Resolved image reference, once known
        failed_in: State the component was in when it failed
        error: The error that failed it
    """

    component: Component
    state: ComponentState = ComponentState.PENDING
    reference: ImageReference | None = None
    failed_in: ComponentState | None = None
    error: DeploymentError | None = None


@dataclass
class DeploymentRun:
    """Transient record of one orchestrator invocation."""

    platform: str
    outcomes: list[ComponentOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """True when every selected component reached SUCCEEDED."""
        return all(o.state is ComponentState.SUCCEEDED for o in self.outcomes)

    @property
    def failure(self) -> ComponentOutcome | None:
        """The component that stopped the run, if any."""
        return next(
            (o for o in self.outcomes if o.state is ComponentState.FAILED), None
        )


class ComponentDeployer:
    """Builds, loads, pins and deploys catalog components one at a time.

    Attributes:
        commands: Shell command executor
        console: CLI console for output
        repo_root: Root of the component source repository
        settings: Deployment settings (namespace, timeout, overrides)
        image_builder: Image build and load handler
        patcher: Kustomization image pinner
        tag_resolver: Deployment tag resolver
        wait: Whether to wait for deployments to become Available after apply
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        repo_root: Path,
        settings: DeploySettings,
        *,
        image_builder: ImageBuilder | None = None,
        patcher: KustomizationPatcher | None = None,
        tag_resolver: TagResolver | None = None,
        platform: str | None = None,
        wait: bool = False,
    ) -> None:
        self.commands = commands
        self.console = console
        self.repo_root = repo_root
        self.settings = settings
        self.image_builder = image_builder or ImageBuilder(
            commands, console, kind_cluster=settings.kind_cluster
        )
        self.patcher = patcher or KustomizationPatcher()
        self.tag_resolver = tag_resolver or TagResolver(
            commands.git, override=settings.image_tag
        )
        self.platform = platform
        self.wait = wait

    # =========================================================================
    # Public Interface
    # =========================================================================

    def run(self, components: Iterable[Component]) -> DeploymentRun:
        """Deploy ``components`` in order, stopping at the first failure.

        The build platform is detected once per run.

        Returns:
            DeploymentRun with one outcome per component; components after a
            failure remain PENDING
        """
        platform = self.platform or detect_platform()
        run = DeploymentRun(
            platform=platform,
            outcomes=[ComponentOutcome(component) for component in components],
        )
        self.console.info(f"Build platform: {platform}")

        for outcome in run.outcomes:
            self.deploy_component(outcome, platform)
            if outcome.state is ComponentState.FAILED:
                break
        return run

    def deploy_component(self, outcome: ComponentOutcome, platform: str) -> None:
        """Drive one component through the state machine.

        Failures are recorded on ``outcome`` rather than raised.
        """
        component = outcome.component
        self.console.print_subheader(
            f"Building and deploying {component.role.value} {component.name}"
        )
        try:
            self._transition(outcome, ComponentState.RESOLVING)
            reference = self._resolve(component)
            outcome.reference = reference

            self._transition(outcome, ComponentState.BUILDING)
            self.image_builder.build(
                self.repo_root / component.source_dir, reference, platform
            )

            self._transition(outcome, ComponentState.STAGING)
            self.image_builder.stage(reference)

            self._transition(outcome, ComponentState.PATCHING)
            self._patch(component, reference)

            self._transition(outcome, ComponentState.DEPLOYING)
            self._deploy(component, reference)
        except DeploymentError as e:
            outcome.failed_in = outcome.state
            outcome.error = e
            self._transition(outcome, ComponentState.FAILED)
            self.console.error(
                f"Failed to deploy {component.role.value}: {component.name} "
                f"({outcome.failed_in.value}: {e.message})"
            )
            return

        self._transition(outcome, ComponentState.SUCCEEDED)
        self.console.ok(f"Successfully deployed {component.name}")

    # =========================================================================
    # States
    # =========================================================================

    def _transition(self, outcome: ComponentOutcome, state: ComponentState) -> None:
        logger.debug(
            f"{outcome.component.name}: {outcome.state.value} -> {state.value}"
        )
        outcome.state = state

    def _resolve(self, component: Component) -> ImageReference:
        source_dir = self.repo_root / component.source_dir
        if not source_dir.is_dir():
            raise ComponentNotFound(f"Component directory not found: {source_dir}")

        kustomization = self.repo_root / component.kustomization
        if not kustomization.is_file():
            raise DocumentNotFound(f"kustomization.yaml not found: {kustomization}")

        overlay = self.repo_root / component.overlay_dir
        if component.layout.overlay_required and not overlay.is_dir():
            raise ComponentNotFound(f"Overlay directory not found: {overlay}")

        name = resolve_image_name(self.repo_root / component.build_descriptor)
        tag = self.tag_resolver.resolve(source_dir)
        reference = ImageReference(name=name, tag=tag)
        self.console.info(f"Image: {reference}")
        return reference

    def _patch(self, component: Component, reference: ImageReference) -> None:
        result = self.patcher.patch(self.repo_root / component.kustomization, reference)
        messages = {
            PatchCase.UPDATED_ENTRY: "updated existing image entry",
            PatchCase.INSERTED_ENTRY: "added image entry",
            PatchCase.ADDED_SECTION: "added images section",
        }
        if result.changed:
            self.console.info(
                f"Pinned {reference} in {component.kustomization} "
                f"({messages[result.case]})"
            )
        else:
            self.console.info(f"{component.kustomization} already pins {reference}")

    def _deploy(self, component: Component, reference: ImageReference) -> None:
        source_dir = self.repo_root / component.source_dir

        if component.layout.generate_manifests:
            self.console.info(f"Generating manifests for {component.name}...")
            if not self.commands.make.manifests(source_dir).success:
                self.console.warn("make manifests failed, continuing...")

        overlay = self.repo_root / component.overlay_dir
        if not overlay.is_dir():
            self.console.warn(
                f"No overlay at {component.overlay_dir}, deploying {component.base_dir}"
            )
            overlay = self.repo_root / component.base_dir

        rendered = self.commands.kubectl.kustomize(overlay)
        if not rendered.success:
            raise RenderFailed(
                f"Failed to render manifests for {component.name}",
                details=rendered.output_tail() or None,
            )

        stream, rewritten = pin_image_references(rendered.stdout, reference)
        if rewritten:
            logger.debug(f"Pinned {rewritten} image reference(s) to {reference}")
        documents = count_documents(stream)
        if documents == 0:
            raise RenderFailed(
                f"Rendering {overlay} produced no manifests for {component.name}"
            )

        self.console.info(
            f"Applying {documents} resource(s) for {component.name} "
            f"from {overlay.relative_to(self.repo_root)}..."
        )
        applied = self.commands.kubectl.apply_stream(stream)
        if not applied.success:
            raise ApplyFailed(
                f"Failed to apply manifests for {component.name}",
                details=applied.output_tail() or None,
            )

        if self.wait:
            waited = self.commands.kubectl.wait_for_deployments(
                self.settings.namespace, timeout=self.settings.timeout
            )
            if not waited.success:
                raise ApplyFailed(
                    f"Deployments in '{self.settings.namespace}' did not become "
                    f"available within {self.settings.timeout}",
                    details=waited.output_tail() or None,
                )
