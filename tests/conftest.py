"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from deployer.api.deps import get_deployment_pipeline
from deployer.core.pipeline import DeploymentPipeline
from deployer.main import app
from deployer.services.filesystem import LocalFileSystem
from fakes import FakeProcessRunner, FakeSourceControl


@pytest.fixture
def source_repo(tmp_path: Path) -> Path:
    """Directory standing in for the remote repository contents."""
    repo = tmp_path / "remote-repo"
    repo.mkdir()
    (repo / "index.html").write_text("<h1>app</h1>")
    return repo


@pytest.fixture
def repo_url() -> str:
    return "https://example.com/org/app.git"


@pytest.fixture
def source_control(repo_url: str, source_repo: Path) -> FakeSourceControl:
    return FakeSourceControl({repo_url: source_repo})


@pytest.fixture
def process_runner() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    return tmp_path / "scratch"


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    return tmp_path / "srv" / "www" / "app"


@pytest.fixture
def pipeline(
    source_control: FakeSourceControl,
    process_runner: FakeProcessRunner,
    scratch_root: Path,
) -> DeploymentPipeline:
    """Pipeline with fake git and processes over the real filesystem."""
    return DeploymentPipeline(
        source_control=source_control,
        process_runner=process_runner,
        filesystem=LocalFileSystem(),
        scratch_root=scratch_root,
        manifest_name="package.json",
        install_command="npm install",
        stage_timeout=30.0,
        deployment_timeout=120.0,
    )


@pytest.fixture
async def client(pipeline: DeploymentPipeline) -> AsyncClient:
    """Create an async test client wired to the fake pipeline."""
    app.dependency_overrides[get_deployment_pipeline] = lambda: pipeline

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
