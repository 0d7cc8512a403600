"""Deployment Pipeline.

Materializes one commit's build output at a target path:

1. acquire_workspace - fresh scratch directory for this run
2. clone - full clone of the repository
3. checkout - detach at the requested commit
4. install_dependencies - only when the manifest exists
5. build - only after an install and with a build command; failures tolerated
6. discover_output - pick the directory to deploy
7. transfer - merge it into the target path
8. cleanup - always remove the workspace
"""

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, TypeVar

import structlog
from pydantic import ValidationError

from deployer.config import settings
from deployer.core.deadline import Deadline, DeadlineExceededError
from deployer.core.discovery import discover_build_output
from deployer.core.exceptions import (
    CleanupError,
    DependencyInstallError,
    DeployerError,
    InvalidRequestError,
    SourceControlError,
)
from deployer.core.transfer import transfer_build_output
from deployer.core.workspace import WorkspaceManager, new_workspace_id
from deployer.models.deployment import (
    DeploymentRequest,
    DeploymentStage,
    PipelineResult,
    Workspace,
)
from deployer.services.filesystem import FileSystem, LocalFileSystem
from deployer.services.process_runner import ProcessRunner, ShellProcessRunner
from deployer.services.source_control import (
    GitSourceControlClient,
    SourceControlClient,
    SourceControlOperationError,
)
from deployer.utils.logging import get_logger

StageCallback = Callable[[DeploymentStage], Awaitable[None]]
T = TypeVar("T")

logger = get_logger("pipeline")


class DeploymentPipeline:
    """Runs the deployment stages for one request at a time.

    The pipeline holds no per-run state, so one instance can serve
    concurrent requests; each run gets its own workspace.
    """

    def __init__(
        self,
        source_control: SourceControlClient | None = None,
        process_runner: ProcessRunner | None = None,
        filesystem: FileSystem | None = None,
        scratch_root: Path | None = None,
        manifest_name: str | None = None,
        install_command: str | None = None,
        stage_timeout: float | None = None,
        deployment_timeout: float | None = None,
    ):
        self.source_control = source_control or GitSourceControlClient()
        self.process_runner = process_runner or ShellProcessRunner()
        self.filesystem = filesystem or LocalFileSystem()
        self.workspaces = WorkspaceManager(
            self.filesystem, scratch_root or settings.scratch_root
        )
        self.manifest_name = manifest_name or settings.manifest_name
        self.install_command = install_command or settings.install_command
        self.stage_timeout = stage_timeout or settings.stage_timeout_seconds
        self.deployment_timeout = deployment_timeout or settings.deployment_timeout_seconds
        self.logger = logger

    @property
    def scratch_root(self) -> Path:
        return self.workspaces.scratch_root

    async def deploy(
        self,
        request: DeploymentRequest | Mapping[str, Any],
        on_stage: StageCallback | None = None,
    ) -> PipelineResult:
        """Run the full pipeline for one request.

        Args:
            request: A validated request or the raw caller payload
            on_stage: Awaited with each stage as it starts

        Returns:
            The single result for this request. Fatal stage errors are
            reported in the result; unexpected exceptions propagate after
            the workspace has been removed.
        """
        try:
            request = self._coerce_request(request)
        except InvalidRequestError as e:
            self.logger.warning("pipeline.invalid_request", fields=e.fields)
            return PipelineResult.failed(e.kind, e.message)

        with structlog.contextvars.bound_contextvars(
            repository=request.repository_url,
            commit=request.commit_identifier,
            target=request.target_path,
        ):
            return await self._deploy(request, on_stage)

    async def _deploy(
        self, request: DeploymentRequest, on_stage: StageCallback | None
    ) -> PipelineResult:
        self.logger.info("pipeline.started")

        deadline = Deadline.start(self.stage_timeout, self.deployment_timeout)
        warnings: list[str] = []

        await self._enter(DeploymentStage.ACQUIRE_WORKSPACE, on_stage)
        workspace = self.workspaces.workspace_for(new_workspace_id())
        try:
            await _in_worker_thread(self.workspaces.allocate, workspace.id)
        except DeployerError as e:
            self.logger.error("pipeline.failed", error_kind=e.kind.value, error=e.message)
            return PipelineResult.failed(e.kind, e.message)
        except asyncio.CancelledError:
            await self._cleanup(workspace, warnings, None)
            raise

        with structlog.contextvars.bound_contextvars(workspace_id=workspace.id):
            try:
                result = await self._run_stages(request, workspace, deadline, warnings, on_stage)
                self.logger.info(
                    "pipeline.completed",
                    resolved_commit=result.commit_identifier,
                    build_output=result.build_output_directory_label.value,
                )
            except DeployerError as e:
                self.logger.error("pipeline.failed", error_kind=e.kind.value, error=e.message)
                result = PipelineResult.failed(e.kind, e.message)
            finally:
                await self._cleanup(workspace, warnings, on_stage)

        result.warnings = warnings
        return result

    def _coerce_request(
        self, request: DeploymentRequest | Mapping[str, Any]
    ) -> DeploymentRequest:
        if isinstance(request, DeploymentRequest):
            return request
        try:
            return DeploymentRequest.model_validate(request)
        except ValidationError as e:
            raise _invalid_request(e) from e

    async def _run_stages(
        self,
        request: DeploymentRequest,
        workspace: Workspace,
        deadline: Deadline,
        warnings: list[str],
        on_stage: StageCallback | None,
    ) -> PipelineResult:
        await self._enter(DeploymentStage.CLONE, on_stage)
        await self._clone(request.repository_url, workspace, deadline)

        await self._enter(DeploymentStage.CHECKOUT, on_stage)
        resolved_commit = await self._checkout(request.commit_identifier, workspace, deadline)

        manifest = workspace.path / self.manifest_name
        if await _in_worker_thread(self.filesystem.exists, manifest):
            await self._enter(DeploymentStage.INSTALL_DEPENDENCIES, on_stage)
            await self._install(workspace, deadline)

            if request.build_command:
                await self._enter(DeploymentStage.BUILD, on_stage)
                warning = await self._build(request.build_command, workspace, deadline)
                if warning:
                    warnings.append(warning)
            else:
                self.logger.info("pipeline.build_skipped", reason="no_build_command")
        else:
            self.logger.info(
                "pipeline.install_skipped", reason="no_manifest", manifest=self.manifest_name
            )

        await self._enter(DeploymentStage.DISCOVER_OUTPUT, on_stage)
        build_output = await _in_worker_thread(
            discover_build_output, self.filesystem, workspace.path
        )

        await self._enter(DeploymentStage.TRANSFER, on_stage)
        await _in_worker_thread(
            transfer_build_output,
            self.filesystem,
            build_output,
            request.target,
            self.scratch_root,
        )

        return PipelineResult(
            success=True,
            commit_identifier=resolved_commit,
            target_path=str(request.target),
            build_output_directory_label=build_output.label,
        )

    async def _clone(self, url: str, workspace: Workspace, deadline: Deadline) -> None:
        try:
            timeout = deadline.timeout_for(DeploymentStage.CLONE)
            await _in_worker_thread(self.source_control.clone, url, workspace.path, timeout)
        except (SourceControlOperationError, DeadlineExceededError) as e:
            raise SourceControlError(
                f"Failed to clone {url}: {e}",
                {"stage": DeploymentStage.CLONE.value},
            ) from e

    async def _checkout(self, commit_id: str, workspace: Workspace, deadline: Deadline) -> str:
        try:
            timeout = deadline.timeout_for(DeploymentStage.CHECKOUT)
            await _in_worker_thread(
                self.source_control.checkout_commit, workspace.path, commit_id, timeout
            )
            return await _in_worker_thread(self.source_control.resolve_head, workspace.path)
        except (SourceControlOperationError, DeadlineExceededError) as e:
            raise SourceControlError(
                f"Failed to check out commit {commit_id}: {e}",
                {"stage": DeploymentStage.CHECKOUT.value, "commit": commit_id},
            ) from e

    async def _install(self, workspace: Workspace, deadline: Deadline) -> None:
        try:
            timeout = deadline.timeout_for(DeploymentStage.INSTALL_DEPENDENCIES)
        except DeadlineExceededError as e:
            raise DependencyInstallError(str(e)) from e

        result = await self.process_runner.run(self.install_command, workspace.path, timeout)
        if not result.ok:
            raise DependencyInstallError(result.describe_failure(), output=result.output_tail)

    async def _build(
        self, build_command: str, workspace: Workspace, deadline: Deadline
    ) -> str | None:
        """Run the build; a failure is returned as a warning, never raised."""
        try:
            timeout = deadline.timeout_for(DeploymentStage.BUILD)
        except DeadlineExceededError as e:
            reason = str(e)
        else:
            result = await self.process_runner.run(build_command, workspace.path, timeout)
            if result.ok:
                return None
            reason = result.describe_failure()
            self.logger.debug("pipeline.build_output", output=result.output_tail)

        self.logger.warning(
            "pipeline.build_failed_continuing",
            reason=reason,
            note="deploying whatever the workspace contains",
        )
        return f"Build failed ({reason}); deployed the workspace contents as they were"

    async def _cleanup(
        self,
        workspace: Workspace,
        warnings: list[str],
        on_stage: StageCallback | None,
    ) -> None:
        try:
            await self._enter(DeploymentStage.CLEANUP, on_stage)
        finally:
            try:
                await _in_worker_thread(self.workspaces.release, workspace)
            except CleanupError as e:
                self.logger.warning(
                    "pipeline.cleanup_failed", workspace_id=workspace.id, error=e.message
                )
                warnings.append(e.message)

    async def _enter(self, stage: DeploymentStage, on_stage: StageCallback | None) -> None:
        self.logger.info("pipeline.stage.started", stage=stage.value)
        if on_stage is not None:
            await on_stage(stage)


_MISSING_ERROR_TYPES = {"missing", "string_too_short"}


def _invalid_request(error: ValidationError) -> InvalidRequestError:
    missing: set[str] = set()
    invalid: dict[str, str] = {}
    for err in error.errors():
        if not err["loc"]:
            return InvalidRequestError("Deployment request must be an object")
        field = str(err["loc"][0])
        if err["type"] in _MISSING_ERROR_TYPES:
            missing.add(field)
        else:
            invalid.setdefault(field, err["msg"])

    problems = []
    if missing:
        problems.append(f"Missing or empty required fields: {', '.join(sorted(missing))}")
    if invalid:
        problems.append(
            "Invalid fields: "
            + ", ".join(f"{field} ({msg})" for field, msg in sorted(invalid.items()))
        )
    return InvalidRequestError("; ".join(problems), sorted(missing | set(invalid)))


async def _in_worker_thread(func: Callable[..., T], *args: Any) -> T:
    """Run blocking work in a worker thread.

    A thread cannot be interrupted, so when the caller is cancelled the
    cancellation is held back until the work has returned. Cleanup that
    follows never races a clone still writing into the workspace.
    """
    future = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(future)
    except asyncio.CancelledError:
        if not future.done():
            logger.info("pipeline.cancelled_waiting_for_worker", operation=func.__name__)
            await asyncio.wait({future})
        if not future.cancelled():
            # The outcome is dropped in favour of the cancellation
            future.exception()
        raise


def get_pipeline() -> DeploymentPipeline:
    """Get a deployment pipeline wired to the real collaborators."""
    return DeploymentPipeline()
