"""Helpers for rendered manifest streams.

``kubectl kustomize`` expands a base + overlay tree into one multi-document
YAML stream. Before the stream is applied, every reference to the freshly
built image is forced to the pinned tag, so an overlay that carries its own
(stale) image pin cannot deploy a different build.
"""

from __future__ import annotations

import re

import yaml  # type: ignore[import-untyped]

from ..errors import RenderFailed
from .image_reference import ImageReference

# Characters that may precede or form part of an image path
_NAME_CHARS = r"A-Za-z0-9._/-"


def image_reference_pattern(name: str) -> re.Pattern[str]:
    """Build a pattern matching ``<name>:<tag>`` for exactly this image name.

    The name is regex-escaped, so dots match only dots, and anchored on the
    left, so ``registry/app`` does not match inside ``mirror/registry/app``.
    The mandatory ``:`` keeps ``registry/app-extra:v1`` from matching, and a
    tag may not run into a ``/``, so a bare ``registry`` never matches the
    ``registry:5000/...`` host prefix.
    """
    return re.compile(
        rf"(?<![{_NAME_CHARS}]){re.escape(name)}:[A-Za-z0-9_.-]+(?![{_NAME_CHARS}])"
    )


def pin_image_references(stream: str, reference: ImageReference) -> tuple[str, int]:
    """Rewrite every tagged reference to ``reference.name`` in ``stream``.

    Args:
        stream: Rendered manifest stream
        reference: Pinned image

    Returns:
        Tuple of (rewritten stream, number of references rewritten)
    """
    return image_reference_pattern(reference.name).subn(str(reference), stream)


def count_documents(stream: str) -> int:
    """Count the non-empty YAML documents in a manifest stream.

    Raises:
        RenderFailed: If the stream is not valid YAML
    """
    try:
        return sum(1 for doc in yaml.safe_load_all(stream) if doc is not None)
    except yaml.YAMLError as e:
        raise RenderFailed("Rendered manifests are not valid YAML", details=str(e)) from e
