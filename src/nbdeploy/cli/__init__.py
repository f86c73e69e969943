"""Main CLI application module.

This module provides the main entry point for the nbdeploy CLI, which
builds Kubeflow notebook components and deploys them to a local
Kubernetes cluster (Kind or Minikube).

Commands:
- deploy: Build, load, pin and apply components
- patch: Pin an image tag in a kustomization file
"""

from typing import Annotated

import typer

from .. import __version__
from .commands import deploy, patch
from .context import build_cli_context
from .shared import configure_logging, console

# Create the main CLI application
app = typer.Typer(
    help="🛠️  nbdeploy - Build and deploy Kubeflow notebook components",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"nbdeploy {__version__}")
        raise typer.Exit()


@app.callback()
def _root(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit",
        ),
    ] = False,
) -> None:
    configure_logging()
    ctx.obj = build_cli_context()


app.command(name="deploy")(deploy)
app.command(name="patch")(patch)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
