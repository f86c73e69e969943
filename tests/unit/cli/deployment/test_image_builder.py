"""Unit tests for the image builder module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, call

import pytest

from nbdeploy.cli.deployment.errors import BuildFailed, DeploymentError, StageFailed
from nbdeploy.cli.deployment.kustomize_deployer.image_builder import (
    BUILD_STRATEGIES,
    BuildStrategy,
    ImageBuilder,
    detect_platform,
    first_success,
)
from nbdeploy.cli.deployment.kustomize_deployer.image_reference import ImageReference
from tests.helpers import failed, ok

REFERENCE = ImageReference("ghcr.io/kubeflow/notebooks/notebook-controller", "v1.9.0")


class TestDetectPlatform:
    @pytest.mark.parametrize(
        "machine, expected",
        [
            ("x86_64", "linux/amd64"),
            ("AMD64", "linux/amd64"),
            ("arm64", "linux/arm64"),
            ("aarch64", "linux/arm64"),
        ],
    )
    def test_known_architectures(self, machine: str, expected: str) -> None:
        assert detect_platform(machine) == expected

    def test_unknown_architecture_defaults_to_amd64(self) -> None:
        assert detect_platform("riscv64") == "linux/amd64"


class TestBuildStrategy:
    def test_variables_per_strategy(self) -> None:
        platform = "linux/arm64"

        assert [s.variables(platform) for s in BUILD_STRATEGIES] == [
            {"ARCH": "linux/arm64"},
            {"PLATFORM": "linux/arm64"},
            {"DOCKER_BUILD_ARGS": "--platform linux/arm64"},
            {},
        ]


class TestFirstSuccess:
    def test_stops_at_first_success(self) -> None:
        attempt = MagicMock(side_effect=[failed(), ok(), ok()])

        outcome = first_success(["a", "b", "c"], attempt)

        assert outcome.succeeded
        assert outcome.winner == "b"
        assert [candidate for candidate, _ in outcome.attempts] == ["a", "b"]
        assert attempt.call_count == 2

    def test_exhausted_candidates(self) -> None:
        outcome = first_success(["a", "b"], lambda _: failed())

        assert not outcome.succeeded
        assert outcome.winner is None
        assert len(outcome.attempts) == 2

    def test_no_candidates(self) -> None:
        outcome = first_success([], lambda _: ok())

        assert outcome.winner is None
        assert outcome.attempts == []


class TestImageBuilder:
    """Tests for the ImageBuilder class."""

    @pytest.fixture
    def image_builder(
        self, mock_commands: MagicMock, mock_console: MagicMock
    ) -> ImageBuilder:
        """Create an ImageBuilder instance with mocked dependencies."""
        return ImageBuilder(commands=mock_commands, console=mock_console)

    def test_build_falls_through_to_working_strategy(
        self, image_builder: ImageBuilder, mock_commands: MagicMock
    ) -> None:
        """Strategies 1 and 2 fail, 3 succeeds, 4 is never attempted."""
        mock_commands.make.docker_build.side_effect = [failed(), failed(), ok(), ok()]
        component_dir = Path("/repo/components/notebook-controller")

        winner = image_builder.build(component_dir, REFERENCE, "linux/amd64")

        assert winner.variable == "DOCKER_BUILD_ARGS"
        base = {"IMG": REFERENCE.name, "TAG": "v1.9.0"}
        assert mock_commands.make.docker_build.call_args_list == [
            call(component_dir, {**base, "ARCH": "linux/amd64"}),
            call(component_dir, {**base, "PLATFORM": "linux/amd64"}),
            call(component_dir, {**base, "DOCKER_BUILD_ARGS": "--platform linux/amd64"}),
        ]

    def test_first_strategy_success(
        self, image_builder: ImageBuilder, mock_commands: MagicMock
    ) -> None:
        winner = image_builder.build(Path("/repo"), REFERENCE, "linux/arm64")

        assert winner is BUILD_STRATEGIES[0]
        assert mock_commands.make.docker_build.call_count == 1

    def test_all_strategies_failing_raises(
        self, image_builder: ImageBuilder, mock_commands: MagicMock
    ) -> None:
        mock_commands.make.docker_build.side_effect = [
            failed("arch"),
            failed("platform"),
            failed("args"),
            failed("no rule to make target 'docker-build'"),
        ]

        with pytest.raises(BuildFailed) as exc_info:
            image_builder.build(Path("/repo"), REFERENCE, "linux/amd64")

        assert isinstance(exc_info.value, DeploymentError)
        assert str(REFERENCE) in exc_info.value.message
        details = exc_info.value.details or ""
        assert "builder default" in details
        assert "no rule to make target" in details
        assert mock_commands.make.docker_build.call_count == 4

    def test_custom_strategies(
        self, mock_commands: MagicMock, mock_console: MagicMock
    ) -> None:
        builder = ImageBuilder(
            mock_commands,
            mock_console,
            strategies=[BuildStrategy("goarch", "GOARCH", "{platform}")],
        )

        builder.build(Path("/repo"), REFERENCE, "linux/arm64")

        mock_commands.make.docker_build.assert_called_once_with(
            Path("/repo"),
            {"IMG": REFERENCE.name, "TAG": "v1.9.0", "GOARCH": "linux/arm64"},
        )

    def test_stage_into_kind(
        self, mock_commands: MagicMock, mock_console: MagicMock
    ) -> None:
        builder = ImageBuilder(mock_commands, mock_console, kind_cluster="dev")

        builder.stage(REFERENCE)

        mock_commands.docker.kind_load_image.assert_called_once_with(str(REFERENCE), "dev")
        mock_commands.docker.minikube_load_image.assert_not_called()

    def test_stage_into_minikube(
        self, image_builder: ImageBuilder, mock_commands: MagicMock
    ) -> None:
        mock_commands.kubectl.is_minikube_context.return_value = True

        image_builder.stage(REFERENCE)

        mock_commands.docker.minikube_load_image.assert_called_once_with(str(REFERENCE))
        mock_commands.docker.kind_load_image.assert_not_called()

    def test_stage_failure_raises(
        self, image_builder: ImageBuilder, mock_commands: MagicMock
    ) -> None:
        mock_commands.docker.kind_load_image.return_value = failed(
            "no nodes found for cluster \"kind\""
        )

        with pytest.raises(StageFailed) as exc_info:
            image_builder.stage(REFERENCE)

        assert "no nodes found" in (exc_info.value.details or "")

    def test_stage_failure_lists_kind_clusters(
        self, image_builder: ImageBuilder, mock_commands: MagicMock
    ) -> None:
        mock_commands.docker.kind_load_image.return_value = failed("not found")
        mock_commands.docker.kind_clusters.return_value = ["dev", "kubeflow"]

        with pytest.raises(StageFailed) as exc_info:
            image_builder.stage(REFERENCE)

        assert "Available Kind clusters: dev, kubeflow" in (exc_info.value.details or "")
        assert "KIND_CLUSTER_NAME" in (exc_info.value.details or "")

    def test_stage_failure_without_kind_clusters(
        self, image_builder: ImageBuilder, mock_commands: MagicMock
    ) -> None:
        mock_commands.docker.kind_load_image.return_value = failed()
        mock_commands.docker.kind_clusters.return_value = []

        with pytest.raises(StageFailed) as exc_info:
            image_builder.stage(REFERENCE)

        assert "kind create cluster" in (exc_info.value.details or "")
