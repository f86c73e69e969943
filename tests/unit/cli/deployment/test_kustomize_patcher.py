"""Unit tests for kustomization image pinning."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from nbdeploy.cli.deployment.errors import (
    DocumentNotFound,
    InvalidDocument,
    InvalidImageReference,
    WriteFailed,
)
from nbdeploy.cli.deployment.kustomize_deployer import kustomize_patcher
from nbdeploy.cli.deployment.kustomize_deployer.image_reference import ImageReference
from nbdeploy.cli.deployment.kustomize_deployer.kustomize_patcher import (
    KustomizationPatcher,
    PatchCase,
    write_atomic,
)

WITH_ENTRY = """\
# Notebook controller base
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
resources:
- manager.yaml
images:
- name: registry/app
  newName: registry/app
  newTag: old
"""

WITH_OTHER_ENTRY = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
resources:
- deployment.yaml
images:
- name: registry/other
  newName: registry/other
  newTag: v0.1.0
"""

WITHOUT_SECTION = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
# Keep resources sorted
resources:
- deployment.yaml
- service.yaml
"""


def _images(text: str) -> list[dict[str, str]]:
    return yaml.safe_load(text)["images"]


class TestPatchText:
    """Tests for KustomizationPatcher.patch_text across document shapes."""

    @pytest.fixture
    def patcher(self) -> KustomizationPatcher:
        return KustomizationPatcher()

    def test_updates_existing_entry(self, patcher: KustomizationPatcher) -> None:
        """An entry with the same name gets the new tag in place."""
        text, case = patcher.patch_text(WITH_ENTRY, ImageReference("registry/app", "v2"))

        assert case is PatchCase.UPDATED_ENTRY
        assert _images(text) == [
            {"name": "registry/app", "newName": "registry/app", "newTag": "v2"}
        ]
        assert text.startswith("# Notebook controller base\n")

    def test_inserts_entry_at_top_of_existing_section(
        self, patcher: KustomizationPatcher
    ) -> None:
        """Unrelated entries are kept and the new entry goes first."""
        text, case = patcher.patch_text(
            WITH_OTHER_ENTRY, ImageReference("registry/app", "v1-dirty")
        )

        assert case is PatchCase.INSERTED_ENTRY
        assert _images(text) == [
            {"name": "registry/app", "newName": "registry/app", "newTag": "v1-dirty"},
            {"name": "registry/other", "newName": "registry/other", "newTag": "v0.1.0"},
        ]

    def test_adds_section_when_missing(self, patcher: KustomizationPatcher) -> None:
        """A document without images gets a new section appended."""
        text, case = patcher.patch_text(
            WITHOUT_SECTION, ImageReference("registry/app", "v2")
        )

        assert case is PatchCase.ADDED_SECTION
        assert text.startswith(WITHOUT_SECTION)
        assert "# Keep resources sorted" in text
        data = yaml.safe_load(text)
        assert data["resources"] == ["deployment.yaml", "service.yaml"]
        assert data["images"] == [
            {"name": "registry/app", "newName": "registry/app", "newTag": "v2"}
        ]

    def test_empty_document_gets_section(self, patcher: KustomizationPatcher) -> None:
        text, case = patcher.patch_text("", ImageReference("registry/app", "v2"))

        assert case is PatchCase.ADDED_SECTION
        assert _images(text)[0]["newTag"] == "v2"

    def test_comment_only_document_keeps_comments(
        self, patcher: KustomizationPatcher
    ) -> None:
        reference = ImageReference("registry/app", "v2")

        text, case = patcher.patch_text("# owned by team-x\n", reference)

        assert case is PatchCase.ADDED_SECTION
        assert text.startswith("# owned by team-x\nimages:\n")
        assert _images(text)[0]["newTag"] == "v2"
        assert patcher.patch_text(text, reference)[0] == text

    def test_crlf_line_endings_are_kept(self, patcher: KustomizationPatcher) -> None:
        original = WITH_OTHER_ENTRY.replace("\n", "\r\n")

        text, case = patcher.patch_text(original, ImageReference("registry/app", "v2"))

        assert case is PatchCase.INSERTED_ENTRY
        assert text.startswith("apiVersion: kustomize.config.k8s.io/v1beta1\r\n")
        assert "\n" not in text.replace("\r\n", "")
        assert [image["name"] for image in _images(text)] == [
            "registry/app",
            "registry/other",
        ]

    def test_null_images_section_gets_entry(self, patcher: KustomizationPatcher) -> None:
        text, case = patcher.patch_text(
            "kind: Kustomization\nimages:\n", ImageReference("registry/app", "v2")
        )

        assert case is PatchCase.INSERTED_ENTRY
        assert _images(text) == [
            {"name": "registry/app", "newName": "registry/app", "newTag": "v2"}
        ]

    def test_dots_in_name_match_only_dots(self, patcher: KustomizationPatcher) -> None:
        """registry.example.com/app must not match registryXexample.com/app."""
        original = (
            "images:\n"
            "- name: registryXexample.com/app\n"
            "  newTag: keep\n"
        )
        text, case = patcher.patch_text(
            original, ImageReference("registry.example.com/app", "v2")
        )

        assert case is PatchCase.INSERTED_ENTRY
        images = _images(text)
        assert images[1] == {"name": "registryXexample.com/app", "newTag": "keep"}
        assert images[0]["name"] == "registry.example.com/app"

    def test_longer_name_is_not_a_match(self, patcher: KustomizationPatcher) -> None:
        original = "images:\n- name: registry/app-extra\n  newTag: keep\n"

        text, case = patcher.patch_text(original, ImageReference("registry/app", "v2"))

        assert case is PatchCase.INSERTED_ENTRY
        assert {"name": "registry/app-extra", "newTag": "keep"} in _images(text)

    def test_digest_is_dropped_when_pinning_tag(
        self, patcher: KustomizationPatcher
    ) -> None:
        original = (
            "images:\n"
            "- name: registry/app\n"
            "  digest: sha256:0123456789abcdef\n"
        )

        text, case = patcher.patch_text(original, ImageReference("registry/app", "v2"))

        assert case is PatchCase.UPDATED_ENTRY
        assert _images(text) == [
            {"name": "registry/app", "newName": "registry/app", "newTag": "v2"}
        ]

    def test_duplicate_entries_are_collapsed(self, patcher: KustomizationPatcher) -> None:
        original = (
            "images:\n"
            "- name: registry/app\n"
            "  newTag: a\n"
            "- name: registry/other\n"
            "  newTag: b\n"
            "- name: registry/app\n"
            "  newTag: c\n"
        )

        text, _ = patcher.patch_text(original, ImageReference("registry/app", "v2"))

        names = [image["name"] for image in _images(text)]
        assert names == ["registry/app", "registry/other"]

    def test_explicit_document_start_is_kept(
        self, patcher: KustomizationPatcher
    ) -> None:
        text, _ = patcher.patch_text(
            "---\n" + WITH_ENTRY, ImageReference("registry/app", "v2")
        )

        assert text.startswith("---")

    def test_images_not_a_list_is_rejected(self, patcher: KustomizationPatcher) -> None:
        with pytest.raises(InvalidDocument) as exc_info:
            patcher.patch_text(
                "images:\n  name: registry/app\n", ImageReference("registry/app", "v2")
            )

        assert "images" in exc_info.value.message

    def test_non_mapping_root_is_rejected(self, patcher: KustomizationPatcher) -> None:
        with pytest.raises(InvalidDocument):
            patcher.patch_text("- a\n- b\n", ImageReference("registry/app", "v2"))

    def test_malformed_yaml_is_rejected(self, patcher: KustomizationPatcher) -> None:
        with pytest.raises(InvalidDocument):
            patcher.patch_text("images: [unclosed\n", ImageReference("registry/app", "v2"))


class TestPatchFile:
    """Tests for KustomizationPatcher.patch against files on disk."""

    @pytest.fixture
    def kustomization(self, tmp_path: Path) -> Path:
        path = tmp_path / "kustomization.yaml"
        path.write_text(WITH_OTHER_ENTRY)
        return path

    def test_writes_patched_document(self, kustomization: Path) -> None:
        reference = ImageReference("registry/app", "v1-dirty")

        result = KustomizationPatcher().patch(kustomization, reference)

        assert result.changed is True
        assert result.case is PatchCase.INSERTED_ENTRY
        assert result.reference == reference
        assert _images(kustomization.read_text())[0]["newTag"] == "v1-dirty"

    def test_second_patch_is_a_no_op(self, kustomization: Path) -> None:
        """Re-applying the same reference leaves the file byte-identical."""
        patcher = KustomizationPatcher()
        reference = ImageReference("registry/app", "v2")

        patcher.patch(kustomization, reference)
        first = kustomization.read_bytes()
        result = patcher.patch(kustomization, reference)

        assert result.changed is False
        assert result.case is PatchCase.UPDATED_ENTRY
        assert kustomization.read_bytes() == first

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentNotFound):
            KustomizationPatcher().patch(
                tmp_path / "kustomization.yaml", ImageReference("registry/app", "v2")
            )

    def test_undecodable_file_is_invalid_document(self, tmp_path: Path) -> None:
        path = tmp_path / "kustomization.yaml"
        path.write_bytes(b"# caf\xe9\nkind: Kustomization\n")

        with pytest.raises(InvalidDocument) as exc_info:
            KustomizationPatcher().patch(path, ImageReference("registry/app", "v2"))

        assert "utf-8" in (exc_info.value.details or "")
        assert path.read_bytes() == b"# caf\xe9\nkind: Kustomization\n"

    def test_crlf_file_stays_crlf_and_is_idempotent(self, tmp_path: Path) -> None:
        path = tmp_path / "kustomization.yaml"
        path.write_bytes(WITH_OTHER_ENTRY.replace("\n", "\r\n").encode())
        patcher = KustomizationPatcher()
        reference = ImageReference("registry/app", "v2")

        patcher.patch(path, reference)
        first = path.read_bytes()
        result = patcher.patch(path, reference)

        assert first.startswith(b"apiVersion: kustomize.config.k8s.io/v1beta1\r\n")
        assert b"\n" not in first.replace(b"\r\n", b"")
        assert result.changed is False
        assert path.read_bytes() == first

    def test_invalid_reference_leaves_file_untouched(self, kustomization: Path) -> None:
        before = kustomization.read_bytes()

        with pytest.raises(InvalidImageReference):
            KustomizationPatcher().patch(
                kustomization, ImageReference("registry/app", "bad tag")
            )

        assert kustomization.read_bytes() == before

    def test_failed_write_keeps_original(
        self, kustomization: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failing rename leaves the original content and no temp files."""
        before = kustomization.read_bytes()

        def _fail(src: object, dst: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(kustomize_patcher.os, "replace", _fail)

        with pytest.raises(WriteFailed) as exc_info:
            KustomizationPatcher().patch(kustomization, ImageReference("registry/app", "v2"))

        assert "disk full" in (exc_info.value.details or "")
        assert kustomization.read_bytes() == before
        assert list(kustomization.parent.iterdir()) == [kustomization]


class TestWriteAtomic:
    def test_replaces_content_and_keeps_mode(self, tmp_path: Path) -> None:
        path = tmp_path / "kustomization.yaml"
        path.write_text("old\n")
        path.chmod(0o640)

        write_atomic(path, "new\n")

        assert path.read_text() == "new\n"
        assert path.stat().st_mode & 0o777 == 0o640
        assert list(tmp_path.iterdir()) == [path]
