"""Deployment constants and the component catalog.

This module centralizes all magic strings, paths, and configuration values
used throughout the deployment process, and the fixed catalogs of
components that can be built and deployed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class DeploymentConstants:
    """Constants for building and deploying notebook components.

    This class provides a centralized location for all deployment-related
    constants, making them easy to find, update, and test.

    All attributes are class-level and immutable.
    """

    # Kubernetes identifiers
    DEFAULT_NAMESPACE: str = "kubeflow"
    DEFAULT_KIND_CLUSTER: str = "kind"

    # Timeouts
    DEFAULT_TIMEOUT: str = "300s"

    # Image tag used when version control cannot describe a source tree
    FALLBACK_TAG: str = "latest"

    # Default component source
    DEFAULT_REPO_URL: str = "https://github.com/kubeflow/notebooks.git"
    DEFAULT_REPO_BRANCH: str = "notebooks-v1"
    DEFAULT_CLONE_DIR_NAME: str = "kubeflow-notebooks-v1"

    # Repository layout
    COMPONENTS_DIR: str = "components"
    CRUD_WEB_APPS_DIR: str = "crud-web-apps"
    BUILD_DESCRIPTOR: str = "Makefile"
    KUSTOMIZATION_FILE: str = "kustomization.yaml"

    # Tools that must be on PATH before a run
    REQUIRED_TOOLS: tuple[str, ...] = ("kubectl", "docker", "make", "kind", "git")

    # Image reference grammar
    # name: registry/namespace/name without tag; tag: docker tag rules
    IMAGE_NAME_PATTERN: re.Pattern[str] = re.compile(r"^[A-Za-z0-9._/-]+$")
    IMAGE_TAG_PATTERN: re.Pattern[str] = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

    # Remote repository sources
    REMOTE_URL_PATTERN: re.Pattern[str] = re.compile(r"^(https?://|git@)")


class ComponentRole(str, Enum):
    """Component role; determines the directory and overlay conventions."""

    CONTROLLER = "controller"
    APP = "app"


class ControllerComponent(str, Enum):
    """Controller components, in deployment order."""

    NOTEBOOK_CONTROLLER = "notebook-controller"
    PVCVIEWER_CONTROLLER = "pvcviewer-controller"
    TENSORBOARD_CONTROLLER = "tensorboard-controller"


class CrudWebApp(str, Enum):
    """CRUD web app components, in deployment order."""

    JUPYTER = "jupyter"
    TENSORBOARDS = "tensorboards"
    VOLUMES = "volumes"


@dataclass(frozen=True)
class RoleLayout:
    """Directory conventions shared by every component of one role.

    Attributes:
        base_dir: Kustomize base holding the image pin, relative to the
                  component directory
        overlay_dir: Kustomize overlay rendered for deployment
        overlay_required: Whether a missing overlay is an error (otherwise
                          the base is rendered instead)
        generate_manifests: Whether ``make manifests`` runs before rendering
    """

    base_dir: Path
    overlay_dir: Path
    overlay_required: bool
    generate_manifests: bool


ROLE_LAYOUTS: dict[ComponentRole, RoleLayout] = {
    ComponentRole.CONTROLLER: RoleLayout(
        base_dir=Path("config/base"),
        overlay_dir=Path("config/overlays/kubeflow"),
        overlay_required=False,
        generate_manifests=True,
    ),
    ComponentRole.APP: RoleLayout(
        base_dir=Path("manifests/base"),
        overlay_dir=Path("manifests/overlays/istio"),
        overlay_required=True,
        generate_manifests=False,
    ),
}


@dataclass(frozen=True)
class Component:
    """A buildable, deployable component from the fixed catalog.

    Components are never created at runtime beyond the catalog; they are
    only selected. All paths are relative to the repository root.
    """

    name: str
    role: ComponentRole

    @classmethod
    def from_catalog(cls, member: ControllerComponent | CrudWebApp) -> Component:
        """Build the Component for a catalog member."""
        if isinstance(member, ControllerComponent):
            return cls(member.value, ComponentRole.CONTROLLER)
        return cls(member.value, ComponentRole.APP)

    @property
    def layout(self) -> RoleLayout:
        """Directory conventions for this component's role."""
        return ROLE_LAYOUTS[self.role]

    @property
    def source_dir(self) -> Path:
        """Component source directory (build context)."""
        constants = DeploymentConstants()
        if self.role is ComponentRole.CONTROLLER:
            return Path(constants.COMPONENTS_DIR) / self.name
        return Path(constants.COMPONENTS_DIR) / constants.CRUD_WEB_APPS_DIR / self.name

    @property
    def build_descriptor(self) -> Path:
        """Makefile declaring the component's IMG."""
        return self.source_dir / DeploymentConstants().BUILD_DESCRIPTOR

    @property
    def kustomization(self) -> Path:
        """Base kustomization.yaml that carries the image pin."""
        return (
            self.source_dir
            / self.layout.base_dir
            / DeploymentConstants().KUSTOMIZATION_FILE
        )

    @property
    def overlay_dir(self) -> Path:
        """Overlay directory rendered for deployment."""
        return self.source_dir / self.layout.overlay_dir

    @property
    def base_dir(self) -> Path:
        """Base kustomize directory."""
        return self.source_dir / self.layout.base_dir
