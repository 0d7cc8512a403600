"""Deployment endpoints."""

import asyncio
from typing import Annotated, Any

from fastapi import APIRouter, Body, status
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from deployer.api.deps import PipelineDep
from deployer.core.events import DeploymentEventStream
from deployer.core.exceptions import ErrorKind
from deployer.core.pipeline import DeploymentPipeline
from deployer.models.deployment import PipelineResult
from deployer.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

DeploymentPayload = Annotated[
    dict[str, Any],
    Body(
        examples=[
            {
                "repositoryUrl": "https://github.com/org/app.git",
                "commitIdentifier": "abc123",
                "targetPath": "/srv/www/app",
                "buildCommand": "npm run build",
            }
        ],
    ),
]

# Streamed runs keep going after the client disconnects; hold references
# so the event loop does not drop them
_running_deployments: set[asyncio.Task] = set()


def _status_for(result: PipelineResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    if result.error_kind == ErrorKind.INVALID_REQUEST:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@router.post(
    "",
    summary="Deploy a commit",
    description=(
        "Clone the repository, check out the commit, build it when it has a "
        "package manifest and copy the build output to the target path. "
        "Blocks until the deployment has finished."
    ),
)
async def deploy(payload: DeploymentPayload, pipeline: PipelineDep) -> JSONResponse:
    """Run a deployment and return its result."""
    result = await pipeline.deploy(payload)
    return JSONResponse(status_code=_status_for(result), content=result.to_payload())


async def _run_streamed(
    pipeline: DeploymentPipeline,
    payload: dict[str, Any],
    stream: DeploymentEventStream,
) -> None:
    try:
        result = await pipeline.deploy(payload, on_stage=stream.publish_stage)
    except Exception as e:
        logger.exception("deployment.stream_failed")
        await stream.publish_error(str(e))
    else:
        await stream.publish_result(result)


@router.post(
    "/stream",
    summary="Deploy a commit with progress events",
    description=(
        "Same as POST /v1/deploy but streams a `stage` event as each stage "
        "starts and a final `result` event."
    ),
)
async def deploy_stream(payload: DeploymentPayload, pipeline: PipelineDep) -> EventSourceResponse:
    """Stream a deployment's progress using Server-Sent Events."""
    stream = DeploymentEventStream()
    task = asyncio.create_task(_run_streamed(pipeline, payload, stream))
    _running_deployments.add(task)
    task.add_done_callback(_running_deployments.discard)

    async def event_generator():
        async for event in stream.events():
            yield event.to_sse()

    return EventSourceResponse(event_generator())
