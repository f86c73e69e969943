"""Kustomize deployer package for notebook components.

This package builds component images, loads them into the local cluster,
pins them in the component's base kustomization and applies the rendered
overlay. Each concern lives in its own module:

- image_reference: Image name discovery from Makefiles and reference grammar
- tag_resolver: Deployment tag resolution (override, git describe, latest)
- image_builder: Multi-strategy image builds and cluster image loading
- kustomize_patcher: Comment-preserving image pinning in kustomization.yaml
- manifest_stream: Image pinning and validation of rendered manifests

The ComponentDeployer class in deployer.py drives each component through
these steps.

Usage:
    from nbdeploy.cli.deployment.kustomize_deployer import ComponentDeployer

    deployer = ComponentDeployer(commands, console, repo_root, settings)
    run = deployer.run(components)
"""

from .deployer import (
    ComponentDeployer,
    ComponentOutcome,
    ComponentState,
    DeploymentRun,
)
from .image_builder import BUILD_STRATEGIES, BuildStrategy, ImageBuilder
from .image_reference import ImageReference, resolve_image_name
from .kustomize_patcher import KustomizationPatcher, PatchCase, PatchResult
from .manifest_stream import count_documents, pin_image_references
from .tag_resolver import TagResolver

__all__ = [
    "ComponentDeployer",
    "ComponentOutcome",
    "ComponentState",
    "DeploymentRun",
    # Component classes for testing/extension
    "BUILD_STRATEGIES",
    "BuildStrategy",
    "ImageBuilder",
    "ImageReference",
    "resolve_image_name",
    "KustomizationPatcher",
    "PatchCase",
    "PatchResult",
    "count_documents",
    "pin_image_references",
    "TagResolver",
]
