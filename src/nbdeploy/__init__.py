"""Build, pin and deploy Kubeflow notebook components to a local cluster."""

__version__ = "1.0.0"
