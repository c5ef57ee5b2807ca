from __future__ import annotations
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

from .errors import OperationBusy, PipelineFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FAILED = "failed"


class OperationGuard:
    """Single-flight state machine for one pipeline.

    ``idle -> running -> (idle | failed)``. A failure message stays observable
    until the next invocation, which clears it on entering ``running``.
    """

    def __init__(self, name: str):
        self.name = name
        self._state = OperationState.IDLE
        self._error: Optional[str] = None

    def __repr__(self) -> str:
        return f"OperationGuard({self.name!r}, state={self._state.value}, error={self._error!r})"

    @property
    def state(self) -> OperationState:
        return self._state

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_running(self) -> bool:
        return self._state is OperationState.RUNNING

    def ensure_idle(self) -> None:
        if self.is_running:
            raise OperationBusy(f"{self.name} is already running")

    def begin(self) -> None:
        self.ensure_idle()
        self._state = OperationState.RUNNING
        self._error = None

    def succeed(self) -> None:
        self._state = OperationState.IDLE
        self._error = None

    def fail(self, message: str) -> None:
        self._state = OperationState.FAILED
        self._error = message

    def clear(self) -> None:
        """Dismiss a recorded failure without running again."""
        if self._state is OperationState.FAILED:
            self.succeed()

    async def run(self, work: Callable[[], Awaitable[T]]) -> Tuple[bool, Optional[T]]:
        """Run ``work`` under the guard; failures are recorded, not raised."""
        self.begin()
        try:
            result = await work()
        except PipelineFailure as e:
            logger.warning("%s failed: %s", self.name, e)
            self.fail(str(e))
            return False, None
        except Exception as e:
            logger.exception("%s crashed", self.name)
            self.fail(str(e) or e.__class__.__name__)
            return False, None
        except asyncio.CancelledError:
            self.fail(f"{self.name} was cancelled")
            raise
        self.succeed()
        return True, result
