"""CLI command modules.

Commands:
- deploy: Build, load and deploy notebook components
- patch: Pin an image tag in a kustomization file
"""

from .deploy import deploy, patch

__all__ = ["deploy", "patch"]
