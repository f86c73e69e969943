"""Deployment of Kubeflow notebook components to a local cluster.

The package is organized into subpackages for modularity:
- shell_commands: Abstractions for shell command execution
- kustomize_deployer: Build, load, pin and apply steps per component

Supporting modules:
- constants: Component catalogs, layouts and fixed values
- selection: Comma-separated component selection
- settings: Environment-driven settings
- repository: Cloned or local component source repository
- prerequisites: Pre-flight tool and cluster checks
- errors: The DeploymentError taxonomy
"""

from .errors import DeploymentError
from .kustomize_deployer import ComponentDeployer, DeploymentRun

__all__ = ["ComponentDeployer", "DeploymentRun", "DeploymentError"]
