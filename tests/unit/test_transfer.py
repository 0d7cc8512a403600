"""Unit tests for artifact transfer."""

import os
from pathlib import Path

import pytest

from deployer.core.exceptions import TransferError
from deployer.core.transfer import transfer_build_output, whole_project_exclusions
from deployer.models.deployment import BuildOutput, BuildOutputLabel
from deployer.services.filesystem import LocalFileSystem


@pytest.fixture
def filesystem() -> LocalFileSystem:
    return LocalFileSystem()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A checkout with sources, caches, metadata and secrets."""
    root = tmp_path / "scratch" / "deploy-1-abc"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.js").write_text("console.log('hi')")
    (root / "index.html").write_text("<h1>app</h1>")
    (root / "node_modules" / "left-pad").mkdir(parents=True)
    (root / "node_modules" / "left-pad" / "index.js").write_text("")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main")
    (root / ".env").write_text("SECRET=1")
    (root / ".env.production").write_text("SECRET=2")
    (root / "src" / ".env.local").write_text("SECRET=3")
    (root / "src" / "node_modules").mkdir()
    return root


class TestWholeProjectExclusions:
    """Tests for the exclusion set."""

    def test_contains_caches_metadata_and_env_files(self, tmp_path: Path):
        """Test the standard exclusions are present."""
        exclusions = whole_project_exclusions(tmp_path / "scratch")
        assert {"node_modules", ".git", ".env", ".env.*"} <= exclusions

    def test_contains_scratch_root_name(self, tmp_path: Path):
        """Test the scratch directory itself is never copied."""
        exclusions = whole_project_exclusions(tmp_path / "deploy-scratch")
        assert "deploy-scratch" in exclusions


class TestTransferBuildOutput:
    """Tests for copying the artifact to the target path."""

    def test_whole_project_copy_applies_exclusions(
        self, filesystem: LocalFileSystem, workspace: Path, tmp_path: Path
    ):
        """Test caches, VCS metadata and env files stay behind."""
        target = tmp_path / "target"
        output = BuildOutput(label=BuildOutputLabel.ENTIRE_PROJECT, path=workspace)

        transfer_build_output(filesystem, output, target, tmp_path / "scratch")

        assert (target / "index.html").read_text() == "<h1>app</h1>"
        assert (target / "src" / "app.js").exists()
        assert not (target / "node_modules").exists()
        assert not (target / "src" / "node_modules").exists()
        assert not (target / ".git").exists()
        assert not (target / ".env").exists()
        assert not (target / ".env.production").exists()
        assert not (target / "src" / ".env.local").exists()

    def test_build_directory_copied_unfiltered(
        self, filesystem: LocalFileSystem, workspace: Path, tmp_path: Path
    ):
        """Test a real build output is copied as-is."""
        dist = workspace / "dist"
        dist.mkdir()
        (dist / "main.js").write_text("bundle")
        (dist / ".env").write_text("PUBLIC=1")
        target = tmp_path / "target"
        output = BuildOutput(label=BuildOutputLabel.DIST, path=dist)

        transfer_build_output(filesystem, output, target, tmp_path / "scratch")

        assert (target / "main.js").read_text() == "bundle"
        assert (target / ".env").exists()
        assert not (target / "dist").exists()
        assert not (target / "index.html").exists()

    def test_creates_missing_target(
        self, filesystem: LocalFileSystem, workspace: Path, tmp_path: Path
    ):
        """Test nested target directories are created."""
        target = tmp_path / "a" / "b" / "c"
        output = BuildOutput(label=BuildOutputLabel.ENTIRE_PROJECT, path=workspace)

        transfer_build_output(filesystem, output, target, tmp_path / "scratch")

        assert (target / "index.html").exists()

    def test_merges_into_existing_target(
        self, filesystem: LocalFileSystem, workspace: Path, tmp_path: Path
    ):
        """Test existing files are overwritten and unrelated files kept."""
        target = tmp_path / "target"
        target.mkdir()
        (target / "index.html").write_text("old")
        (target / "stale.txt").write_text("from a previous build")
        output = BuildOutput(label=BuildOutputLabel.ENTIRE_PROJECT, path=workspace)

        transfer_build_output(filesystem, output, target, tmp_path / "scratch")

        assert (target / "index.html").read_text() == "<h1>app</h1>"
        assert (target / "stale.txt").exists()

    def test_target_is_a_file(
        self, filesystem: LocalFileSystem, workspace: Path, tmp_path: Path
    ):
        """Test an unusable target path raises TransferError."""
        target = tmp_path / "occupied"
        target.write_text("I am a file")
        output = BuildOutput(label=BuildOutputLabel.ENTIRE_PROJECT, path=workspace)

        with pytest.raises(TransferError) as exc_info:
            transfer_build_output(filesystem, output, target, tmp_path / "scratch")

        assert exc_info.value.details["target"] == str(target)

    def test_missing_source(self, filesystem: LocalFileSystem, tmp_path: Path):
        """Test a vanished build directory raises TransferError."""
        output = BuildOutput(label=BuildOutputLabel.DIST, path=tmp_path / "gone")

        with pytest.raises(TransferError):
            transfer_build_output(filesystem, output, tmp_path / "target", tmp_path / "scratch")


class TestSymlinkedArtifacts:
    """Links in the artifact are copied as links and survive redeploys."""

    @pytest.fixture
    def linked_output(self, tmp_path: Path) -> BuildOutput:
        out = tmp_path / "scratch" / "deploy-1-abc" / "out"
        (out / "assets").mkdir(parents=True)
        (out / "index.html").write_text("<h1>app</h1>")
        (out / "home.html").symlink_to("index.html")
        (out / "static").symlink_to("assets", target_is_directory=True)
        return BuildOutput(label=BuildOutputLabel.OUT, path=out)

    def test_links_are_preserved(
        self, filesystem: LocalFileSystem, linked_output: BuildOutput, tmp_path: Path
    ):
        """Test links are recreated rather than dereferenced."""
        target = tmp_path / "target"

        transfer_build_output(filesystem, linked_output, target, tmp_path / "scratch")

        assert (target / "home.html").is_symlink()
        assert (target / "home.html").read_text() == "<h1>app</h1>"
        assert (target / "static").is_symlink()

    def test_second_transfer_replaces_existing_links(
        self, filesystem: LocalFileSystem, linked_output: BuildOutput, tmp_path: Path
    ):
        """Test copying the same artifact twice succeeds."""
        target = tmp_path / "target"

        transfer_build_output(filesystem, linked_output, target, tmp_path / "scratch")
        transfer_build_output(filesystem, linked_output, target, tmp_path / "scratch")

        assert os.readlink(target / "home.html") == "index.html"
        assert os.readlink(target / "static") == "assets"

    def test_link_replaces_regular_file(
        self, filesystem: LocalFileSystem, linked_output: BuildOutput, tmp_path: Path
    ):
        """Test a file left by an earlier build is replaced by the new link."""
        target = tmp_path / "target"
        target.mkdir()
        (target / "home.html").write_text("old page")

        transfer_build_output(filesystem, linked_output, target, tmp_path / "scratch")

        assert (target / "home.html").is_symlink()

    def test_file_never_written_through_existing_link(
        self, filesystem: LocalFileSystem, linked_output: BuildOutput, tmp_path: Path
    ):
        """Test a stale link in the target is replaced, not followed."""
        outside = tmp_path / "outside.html"
        outside.write_text("untouched")
        target = tmp_path / "target"
        target.mkdir()
        (target / "index.html").symlink_to(outside)

        transfer_build_output(filesystem, linked_output, target, tmp_path / "scratch")

        assert not (target / "index.html").is_symlink()
        assert (target / "index.html").read_text() == "<h1>app</h1>"
        assert outside.read_text() == "untouched"
