"""Time budget for one deployment run."""

import time
from dataclasses import dataclass

from deployer.models.deployment import DeploymentStage


class DeadlineExceededError(Exception):
    """The deployment's time budget ran out before a stage could start."""

    def __init__(self, stage: DeploymentStage):
        super().__init__(f"deployment deadline exceeded before stage '{stage.value}'")
        self.stage = stage


@dataclass(frozen=True)
class Deadline:
    """Per-request budget threaded through the pipeline.

    Each external stage gets ``min(stage_timeout, time left overall)``.
    ``expires_at`` is on the ``time.monotonic()`` clock; ``None`` means the
    run has no overall limit and only the per-stage timeout applies.
    """

    stage_timeout: float
    expires_at: float | None = None

    @classmethod
    def start(cls, stage_timeout: float, total_timeout: float | None = None) -> "Deadline":
        expires_at = time.monotonic() + total_timeout if total_timeout else None
        return cls(stage_timeout=stage_timeout, expires_at=expires_at)

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def timeout_for(self, stage: DeploymentStage) -> float:
        """Timeout to apply to ``stage``; raises if nothing is left."""
        remaining = self.remaining()
        if remaining is None:
            return self.stage_timeout
        if remaining <= 0:
            raise DeadlineExceededError(stage)
        return min(self.stage_timeout, remaining)
