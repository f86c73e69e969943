"""Shared fixtures for the nbdeploy test suite.

Nothing here touches a real cluster, docker daemon or network; shell
commands are replaced with MagicMock instances returning CommandResults.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tests.helpers import ok

CONTROLLER_KUSTOMIZATION = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
resources:
- manager.yaml
"""

APP_KUSTOMIZATION = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
resources:
- deployment.yaml
- service.yaml
"""

@pytest.fixture
def mock_commands() -> MagicMock:
    """Shell commands whose every call succeeds by default."""
    commands = MagicMock()
    commands.make.docker_build.return_value = ok()
    commands.make.manifests.return_value = ok()
    commands.docker.kind_load_image.return_value = ok()
    commands.docker.minikube_load_image.return_value = ok()
    commands.docker.kind_clusters.return_value = ["kind"]
    commands.kubectl.is_minikube_context.return_value = False
    commands.kubectl.get_current_context.return_value = "kind-kind"
    commands.kubectl.cluster_info.return_value = ok()
    commands.kubectl.apply_stream.return_value = ok("deployment.apps/x configured")
    commands.kubectl.wait_for_deployments.return_value = ok()
    commands.git.describe.return_value = "v1.9.0"
    commands.git.clone.return_value = ok()
    return commands


@pytest.fixture
def mock_console() -> MagicMock:
    """A CLIConsole stand-in recording every call."""
    return MagicMock()


@pytest.fixture
def notebooks_repo(tmp_path: Path) -> Path:
    """A minimal notebooks repository tree with every catalog component.

    Controllers get ``config/base`` and ``config/overlays/kubeflow``;
    CRUD web apps get ``manifests/base`` and ``manifests/overlays/istio``.
    Each Makefile declares ``IMG ?= ghcr.io/kubeflow/notebooks/<name>``.
    """
    root = tmp_path / "notebooks"
    components = root / "components"

    for name in ("notebook-controller", "pvcviewer-controller", "tensorboard-controller"):
        source = components / name
        (source / "config" / "base").mkdir(parents=True)
        (source / "config" / "overlays" / "kubeflow").mkdir(parents=True)
        (source / "Makefile").write_text(
            f"IMG ?= ghcr.io/kubeflow/notebooks/{name}\n\ndocker-build:\n"
        )
        (source / "config" / "base" / "kustomization.yaml").write_text(
            CONTROLLER_KUSTOMIZATION
        )

    for name in ("jupyter", "tensorboards", "volumes"):
        source = components / "crud-web-apps" / name
        (source / "manifests" / "base").mkdir(parents=True)
        (source / "manifests" / "overlays" / "istio").mkdir(parents=True)
        (source / "Makefile").write_text(
            f"IMG ?= ghcr.io/kubeflow/notebooks/{name}-web-app\n"
        )
        (source / "manifests" / "base" / "kustomization.yaml").write_text(
            APP_KUSTOMIZATION
        )

    return root
