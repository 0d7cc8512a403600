"""Deployment data models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from deployer.config import settings
from deployer.core.exceptions import ErrorKind


class DeploymentStage(str, Enum):
    """Pipeline stages, in execution order."""

    ACQUIRE_WORKSPACE = "acquire_workspace"
    CLONE = "clone"
    CHECKOUT = "checkout"
    INSTALL_DEPENDENCIES = "install_dependencies"
    BUILD = "build"
    DISCOVER_OUTPUT = "discover_output"
    TRANSFER = "transfer"
    CLEANUP = "cleanup"

    @property
    def description(self) -> str:
        """Short text suitable for showing the current step in a UI."""
        return _STAGE_DESCRIPTIONS[self]


_STAGE_DESCRIPTIONS = {
    DeploymentStage.ACQUIRE_WORKSPACE: "Preparing workspace...",
    DeploymentStage.CLONE: "Cloning repository...",
    DeploymentStage.CHECKOUT: "Checking out commit...",
    DeploymentStage.INSTALL_DEPENDENCIES: "Installing dependencies...",
    DeploymentStage.BUILD: "Building project...",
    DeploymentStage.DISCOVER_OUTPUT: "Locating build output...",
    DeploymentStage.TRANSFER: "Copying to deployment path...",
    DeploymentStage.CLEANUP: "Cleaning up...",
}


class BuildOutputLabel(str, Enum):
    """Which conventional directory was deployed."""

    NEXT = ".next"
    BUILD = "build"
    DIST = "dist"
    OUT = "out"
    PUBLIC = "public"
    ENTIRE_PROJECT = "entire project"


class DeploymentRequest(BaseModel):
    """One deployment invocation.

    ``build_command`` falls back to the configured default when omitted.
    An explicit ``null`` or blank string means "skip the build".
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    repository_url: str = Field(..., min_length=1)
    commit_identifier: str = Field(..., min_length=1)
    target_path: str = Field(..., min_length=1)
    build_command: str | None = Field(default_factory=lambda: settings.default_build_command)

    @field_validator("build_command")
    @classmethod
    def blank_build_command_means_skip(cls, value: str | None) -> str | None:
        return value or None

    @property
    def target(self) -> Path:
        return Path(self.target_path).expanduser()


class Workspace(BaseModel):
    """Disposable clone location owned by exactly one pipeline run."""

    model_config = ConfigDict(frozen=True)

    id: str
    path: Path


class BuildOutput(BaseModel):
    """The directory chosen as the deployable artifact."""

    model_config = ConfigDict(frozen=True)

    label: BuildOutputLabel
    path: Path

    @property
    def is_workspace_root(self) -> bool:
        return self.label == BuildOutputLabel.ENTIRE_PROJECT


class PipelineResult(BaseModel):
    """Outcome of a deployment, produced exactly once per request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    commit_identifier: str | None = None
    target_path: str | None = None
    build_output_directory_label: BuildOutputLabel | None = None

    error_kind: ErrorKind | None = None
    message: str | None = None

    # Non-fatal problems: a tolerated build failure, a failed cleanup
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def failed(
        cls, kind: ErrorKind, message: str, warnings: list[str] | None = None
    ) -> "PipelineResult":
        return cls(success=False, error_kind=kind, message=message, warnings=warnings or [])

    def to_payload(self) -> dict:
        """Serialize for the HTTP layer using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
