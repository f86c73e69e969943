"""Image pinning for kustomization.yaml documents.

The patcher loads a kustomization into a round-trip tree with ruamel.yaml
(comments, key order and quoting survive), pins one image entry, and
writes the result back atomically. Three document shapes are handled:

- An ``images`` entry for the image already exists: its ``newName`` and
  ``newTag`` are updated in place.
- An ``images`` section exists without that entry: a new entry is inserted
  at the top of the section.
- There is no ``images`` section: one is appended with a single entry.

Entries are matched on their exact ``name`` value, never on substrings,
so ``registry.example.com/app`` cannot match ``registryXexample.com/app``
or ``registry.example.com/app-extra``.
"""

from __future__ import annotations

import io
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError
from ruamel.yaml.util import load_yaml_guess_indent

from ..errors import DocumentNotFound, InvalidDocument, WriteFailed
from .image_reference import ImageReference

IMAGES_KEY = "images"


class PatchCase(str, Enum):
    """Which document shape a patch encountered."""

    UPDATED_ENTRY = "updated-entry"
    INSERTED_ENTRY = "inserted-entry"
    ADDED_SECTION = "added-section"


@dataclass(frozen=True)
class PatchResult:
    """Outcome of pinning one image in one document.

    Attributes:
        path: Patched document
        reference: Image reference that was pinned
        case: Document shape that was found
        changed: Whether the file content changed (False when already pinned)
    """

    path: Path
    reference: ImageReference
    case: PatchCase
    changed: bool


def _get_yaml(text: str) -> YAML:
    """Build a round-trip YAML instance matching the document's layout."""
    _, indent, block_seq_indent = load_yaml_guess_indent(text)
    yaml = YAML(typ="rt")
    yaml.preserve_quotes = True
    yaml.width = 4096
    offset = block_seq_indent or 0
    yaml.indent(
        mapping=indent or 2,
        sequence=max(indent or 2, offset + 2),
        offset=offset,
    )
    yaml.explicit_start = _has_explicit_start(text)
    return yaml


def _has_explicit_start(text: str) -> bool:
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        return stripped.startswith("---")
    return False


def _new_entry(reference: ImageReference) -> CommentedMap:
    entry = CommentedMap()
    entry["name"] = reference.name
    entry["newName"] = reference.name
    entry["newTag"] = reference.tag
    return entry


def _set_if_different(entry: CommentedMap, key: str, value: str) -> None:
    # Leave equal scalars alone so their original quoting is kept
    if key in entry and str(entry[key]) == value:
        return
    entry[key] = value


def write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` via a sibling temp file and rename.

    The original file is either fully replaced or left untouched; a failure
    never leaves it missing or truncated.

    Raises:
        WriteFailed: If the temp file cannot be written or renamed
    """
    tmp_path: Path | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise WriteFailed(
            f"Failed to write {path}",
            details=f"{e}\nThe original file was left unchanged.",
        ) from e


class KustomizationPatcher:
    """Pins image references in kustomization documents."""

    def patch_text(self, text: str, reference: ImageReference) -> tuple[str, PatchCase]:
        """Pin ``reference`` in kustomization ``text``.

        Args:
            text: Current document content
            reference: Image to pin

        Returns:
            Tuple of (new content, document shape found)

        Raises:
            InvalidImageReference: If the reference fails the grammar checks
            InvalidDocument: If the text is not a YAML mapping with an
                optional ``images`` list
        """
        reference.validate()
        line_break = "\r\n" if "\r\n" in text else "\n"
        text = text.replace("\r\n", "\n")

        try:
            yaml = _get_yaml(text)
            root: Any = yaml.load(text)
        except YAMLError as e:
            raise InvalidDocument("Document is not valid YAML", details=str(e)) from e

        prefix = ""
        if root is None:
            # Empty or comment-only document: keep its text above the new section
            prefix = text if not text or text.endswith("\n") else text + "\n"
            yaml.explicit_start = False
            root = CommentedMap()
        if not isinstance(root, dict):
            raise InvalidDocument(
                "Document root is not a mapping",
                details=f"Found {type(root).__name__} instead",
            )

        case = self._pin(root, reference)

        buffer = io.StringIO()
        yaml.dump(root, buffer)
        patched = prefix + buffer.getvalue()
        if line_break != "\n":
            patched = patched.replace("\n", line_break)
        return patched, case

    def patch(self, path: Path, reference: ImageReference) -> PatchResult:
        """Pin ``reference`` in the kustomization file at ``path``.

        The reference is validated before the file is read; the file is only
        rewritten when its content changes, so re-applying the same reference
        leaves it byte-identical.

        Raises:
            InvalidImageReference: If the reference fails the grammar checks
            DocumentNotFound: If ``path`` does not exist
            InvalidDocument: If the document cannot be read or patched
            WriteFailed: If the atomic write fails
        """
        reference.validate()
        if not path.is_file():
            raise DocumentNotFound(f"kustomization.yaml not found: {path}")

        try:
            # Decoded from bytes so CRLF line endings survive
            original = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidDocument(f"Cannot read {path}", details=str(e)) from e
        patched, case = self.patch_text(original, reference)
        changed = patched != original
        if changed:
            write_atomic(path, patched)
        logger.debug(f"Pinned {reference} in {path} ({case.value}, changed={changed})")
        return PatchResult(path=path, reference=reference, case=case, changed=changed)

    def _pin(self, root: CommentedMap, reference: ImageReference) -> PatchCase:
        if IMAGES_KEY not in root:
            root[IMAGES_KEY] = CommentedSeq([_new_entry(reference)])
            return PatchCase.ADDED_SECTION

        images = root[IMAGES_KEY]
        if images is None:
            root[IMAGES_KEY] = CommentedSeq([_new_entry(reference)])
            return PatchCase.INSERTED_ENTRY
        if not isinstance(images, list):
            raise InvalidDocument(
                f"'{IMAGES_KEY}' is not a list",
                details=f"Found {type(images).__name__} instead",
            )

        matches = [
            index
            for index, entry in enumerate(images)
            if isinstance(entry, dict) and str(entry.get("name")) == reference.name
        ]
        if not matches:
            images.insert(0, _new_entry(reference))
            return PatchCase.INSERTED_ENTRY

        entry = images[matches[0]]
        _set_if_different(entry, "newName", reference.name)
        _set_if_different(entry, "newTag", reference.tag)
        # A digest takes precedence over newTag in kustomize
        if "digest" in entry:
            del entry["digest"]

        # Collapse duplicate entries for the same image
        for index in reversed(matches[1:]):
            del images[index]
        return PatchCase.UPDATED_ENTRY
