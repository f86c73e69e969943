"""Command result builders shared by the unit tests."""

from nbdeploy.cli.deployment.shell_commands import CommandResult


def ok(stdout: str = "") -> CommandResult:
    """A successful CommandResult."""
    return CommandResult(success=True, stdout=stdout)


def failed(stderr: str = "boom", returncode: int = 2) -> CommandResult:
    """A failed CommandResult."""
    return CommandResult(success=False, stderr=stderr, returncode=returncode)


def rendered_deployment(name: str, image: str, tag: str = "stale") -> str:
    """A one-document manifest stream as ``kubectl kustomize`` prints it."""
    return f"""\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {name}
  namespace: kubeflow
spec:
  template:
    spec:
      containers:
      - name: {name}
        image: {image}:{tag}
"""
