"""Stage events for streaming a deployment over Server-Sent Events."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from deployer.models.deployment import DeploymentStage, PipelineResult

TERMINAL_EVENTS = frozenset({"result", "error"})


@dataclass
class Event:
    """An SSE event."""

    event_type: str
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_sse(self) -> dict[str, str]:
        """Convert to the mapping ``EventSourceResponse`` expects."""
        return {
            "event": self.event_type,
            "data": json.dumps({**self.data, "timestamp": self.timestamp.isoformat()}),
        }

    @property
    def is_terminal(self) -> bool:
        return self.event_type in TERMINAL_EVENTS


class DeploymentEventStream:
    """Events for a single deployment, consumed by one SSE response."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Event] = asyncio.Queue()

    async def publish(self, event: Event) -> None:
        await self._queue.put(event)

    async def publish_stage(self, stage: DeploymentStage) -> None:
        """Publish a stage started event."""
        await self.publish(
            Event(
                event_type="stage",
                data={"stage": stage.value, "description": stage.description},
            )
        )

    async def publish_result(self, result: PipelineResult) -> None:
        """Publish the final pipeline result."""
        await self.publish(Event(event_type="result", data=result.to_payload()))

    async def publish_error(self, error: str) -> None:
        """Publish an unexpected failure that produced no result."""
        await self.publish(Event(event_type="error", data={"error": error}))

    async def events(self) -> AsyncIterator[Event]:
        """Yield events until the result (or an error) has been delivered."""
        while True:
            event = await self._queue.get()
            yield event
            if event.is_terminal:
                return
