"""
Effect runners for durable-execution hosts
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .exceptions import OperationError
from .interfaces import EffectRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PassthroughEffects(EffectRunner):
    """Runs every effect directly; used when the host does not persist effects"""

    async def effect(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        return await fn()


@dataclass
class RecordedOutcome:
    """Persisted outcome of one effect"""

    value: Any = None
    error: Optional[OperationError] = None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value


class RecordedEffects(EffectRunner):
    """
    Records effect outcomes on a fresh execution and replays them afterwards.

    The journal is a plain mapping so a host can persist it however it
    likes and hand it back on re-execution. Only operation errors are
    recorded; anything else is a bug in the caller and propagates without
    being journaled.
    """

    def __init__(self, journal: Optional[dict[str, RecordedOutcome]] = None):
        self.journal: dict[str, RecordedOutcome] = journal if journal is not None else {}

    def is_replay(self, key: str) -> bool:
        return key in self.journal

    async def effect(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        recorded = self.journal.get(key)
        if recorded is not None:
            logger.debug(f"Replaying recorded effect {key}")
            return recorded.unwrap()

        try:
            value = await fn()
        except OperationError as e:
            self.journal[key] = RecordedOutcome(error=e)
            raise

        self.journal[key] = RecordedOutcome(value=value)
        return value


class EffectScope:
    """
    Per-run key generator.

    Keys combine the request id, the operation name and a sequence number,
    so repeated calls of the same operation (polls, sleeps) get distinct,
    deterministic keys across re-executions.
    """

    def __init__(self, runner: EffectRunner, request_id: str):
        self.runner = runner
        self.request_id = request_id
        self._sequence = 0

    async def run(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        self._sequence += 1
        key = f"{self.request_id}/{self._sequence:04d}/{operation}"
        return await self.runner.effect(key, fn)


async def run_effect(
    scope: Optional[EffectScope], operation: str, fn: Callable[[], Awaitable[T]]
) -> T:
    """Run a remote call through the scope if one is active, directly otherwise"""
    if scope is None:
        return await fn()
    return await scope.run(operation, fn)
