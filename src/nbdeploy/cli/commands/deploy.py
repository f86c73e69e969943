"""Build and deployment commands.

This module provides the commands that build notebook component images,
load them into the local cluster and apply their manifests, plus the
standalone image pinning command.
"""

from pathlib import Path
from typing import Annotated

import typer

from ..context import get_cli_context
from ..deployment.constants import Component, ControllerComponent, CrudWebApp
from ..deployment.errors import DeploymentError
from ..deployment.kustomize_deployer import (
    ComponentDeployer,
    ImageReference,
    KustomizationPatcher,
    PatchCase,
)
from ..deployment.prerequisites import check_prerequisites
from ..deployment.repository import RepositoryWorkspace
from ..deployment.selection import parse_selection
from ..shared import configure_logging, console, with_error_handling

# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------


def _selected_components(
    components: str | None, apps: str | None
) -> list[Component]:
    """Resolve the --components/--apps flags into controllers then apps."""
    controllers = parse_selection(
        components, explicit=components is not None, catalog=ControllerComponent
    )
    web_apps = parse_selection(apps, explicit=apps is not None, catalog=CrudWebApp)

    if not controllers:
        console.info("No controller components selected (skipping)")
    if not web_apps:
        console.info("No CRUD web app components selected (skipping)")

    return [Component.from_catalog(member) for member in [*controllers, *web_apps]]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@with_error_handling
def deploy(
    ctx: typer.Context,
    components: Annotated[
        str | None,
        typer.Option(
            "--components",
            help="Comma-separated controllers to deploy (default: all)",
        ),
    ] = None,
    apps: Annotated[
        str | None,
        typer.Option(
            "--apps",
            help="Comma-separated CRUD web apps to deploy (default: all)",
        ),
    ] = None,
    repo: Annotated[
        str | None,
        typer.Option(
            "--repo",
            help="Local path or remote URL of the notebooks repository "
            "(default: clone kubeflow/notebooks, notebooks-v1 branch)",
        ),
    ] = None,
    wait: Annotated[
        bool,
        typer.Option(
            "--wait",
            help="Wait for deployments to become Available after each apply",
        ),
    ] = False,
    skip_checks: Annotated[
        bool,
        typer.Option(
            "--skip-checks",
            help="Skip tool and cluster connectivity checks",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging (commands, build attempts, patch decisions)",
        ),
    ] = False,
) -> None:
    """Build, load and deploy notebook components to the current cluster.

    Controllers are deployed first, then CRUD web apps, each in catalog
    order. The run stops at the first failing component.

    Examples:
        nbdeploy deploy
        nbdeploy deploy --components notebook-controller --apps jupyter
        nbdeploy deploy --components "" --apps volumes --repo ../notebooks
        nbdeploy deploy --repo https://github.com/me/notebooks.git --wait
    """
    configure_logging(verbose)
    cli = get_cli_context(ctx)
    console.print_header("Building and Deploying Kubeflow Notebook Components")

    settings = cli.load_settings()
    selected = _selected_components(components, apps)
    if not selected:
        console.warn("Nothing to deploy")
        return

    if skip_checks:
        console.warn("Skipping prerequisite checks")
    else:
        check_prerequisites(cli.commands, console, cli.constants)

    with RepositoryWorkspace(
        cli.commands, console, repo, constants=cli.constants
    ) as repo_root:
        deployer = ComponentDeployer(
            cli.commands, console, repo_root, settings, wait=wait
        )
        run = deployer.run(selected)

    console.print_run_summary(run)

    failure = run.failure
    if failure is not None:
        error = failure.error
        raise DeploymentError(
            f"Deployment failed at {failure.component.role.value} "
            f"{failure.component.name}",
            details=(
                "\n".join(filter(None, [error.message, error.details]))
                if error
                else None
            ),
        )
    console.ok("All selected components deployed successfully")


@with_error_handling
def patch(
    ctx: typer.Context,
    kustomization: Annotated[
        Path,
        typer.Argument(help="Path to the kustomization.yaml to update"),
    ],
    image: Annotated[
        str,
        typer.Option("--image", "-i", help="Image name without tag"),
    ],
    tag: Annotated[
        str,
        typer.Option("--tag", "-t", help="Image tag to pin"),
    ],
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Pin an image name to a tag in a kustomization file.

    Updates the matching ``images`` entry, adds one, or adds the section,
    preserving comments and formatting. The file is left untouched when it
    already pins the tag.

    Examples:
        nbdeploy patch config/base/kustomization.yaml --image ghcr.io/kubeflow/notebook-controller --tag v1.9.0
    """
    configure_logging(verbose)
    cli = get_cli_context(ctx)
    reference = ImageReference(name=image, tag=tag)
    result = KustomizationPatcher().patch(kustomization, reference)

    messages = {
        PatchCase.UPDATED_ENTRY: "Updated existing image entry",
        PatchCase.INSERTED_ENTRY: "Added image entry",
        PatchCase.ADDED_SECTION: "Added images section",
    }
    if result.changed:
        cli.console.ok(f"{messages[result.case]}: {reference} in {kustomization}")
    else:
        cli.console.info(f"{kustomization} already pins {reference}")
