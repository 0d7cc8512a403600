"""Unit tests for build-output discovery."""

from pathlib import Path

import pytest

from deployer.core.discovery import BUILD_OUTPUT_CANDIDATES, discover_build_output
from deployer.models.deployment import BuildOutputLabel
from deployer.services.filesystem import LocalFileSystem


@pytest.fixture
def filesystem() -> LocalFileSystem:
    return LocalFileSystem()


class TestDiscoverBuildOutput:
    """Tests for the ordered candidate heuristic."""

    def test_candidate_order(self):
        """Test the probing order."""
        assert [label.value for label in BUILD_OUTPUT_CANDIDATES] == [
            ".next",
            "build",
            "dist",
            "out",
            "public",
        ]

    def test_dist_beats_public(self, filesystem: LocalFileSystem, tmp_path: Path):
        """Test priority order wins over filesystem order."""
        (tmp_path / "public").mkdir()
        (tmp_path / "dist").mkdir()

        output = discover_build_output(filesystem, tmp_path)

        assert output.label == BuildOutputLabel.DIST
        assert output.path == tmp_path / "dist"
        assert not output.is_workspace_root

    def test_first_candidate_wins_over_all(self, filesystem: LocalFileSystem, tmp_path: Path):
        """Test .next is authoritative when every candidate exists."""
        for label in BUILD_OUTPUT_CANDIDATES:
            (tmp_path / label.value).mkdir()

        output = discover_build_output(filesystem, tmp_path)

        assert output.label == BuildOutputLabel.NEXT

    @pytest.mark.parametrize(
        "directory,label",
        [
            ("build", BuildOutputLabel.BUILD),
            ("out", BuildOutputLabel.OUT),
            ("public", BuildOutputLabel.PUBLIC),
        ],
    )
    def test_single_candidate(self, filesystem, tmp_path: Path, directory, label):
        """Test each conventional directory is recognised."""
        (tmp_path / directory).mkdir()

        assert discover_build_output(filesystem, tmp_path).label == label

    def test_files_are_not_candidates(self, filesystem: LocalFileSystem, tmp_path: Path):
        """Test a file named like a candidate is skipped."""
        (tmp_path / "dist").write_text("not a directory")
        (tmp_path / "public").mkdir()

        assert discover_build_output(filesystem, tmp_path).label == BuildOutputLabel.PUBLIC

    def test_fallback_to_workspace_root(self, filesystem: LocalFileSystem, tmp_path: Path):
        """Test no candidate means the whole project is deployed."""
        (tmp_path / "src").mkdir()
        (tmp_path / "index.html").write_text("hi")

        output = discover_build_output(filesystem, tmp_path)

        assert output.label == BuildOutputLabel.ENTIRE_PROJECT
        assert output.path == tmp_path
        assert output.is_workspace_root
