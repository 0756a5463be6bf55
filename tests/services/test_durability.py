"""
Unit tests for effect recording and replay
"""

import asyncio
import unittest
from unittest.mock import AsyncMock

from stt_services.core.durability import (
    EffectScope,
    PassthroughEffects,
    RecordedEffects,
    run_effect,
)
from stt_services.core.exceptions import InternalServerError, NotFoundError
from stt_services.core.models import JobStatus
from stt_services.orchestration.saga import ProviderCapabilities, SagaCoordinator
from stt_services.storage.providers.memory import InMemoryObjectStore
from stt_services.transcription.providers.memory import InMemoryRecognizer
from tests.services.fakes import FakeClock, make_request


class TestRecordedEffects(unittest.TestCase):
    """Test RecordedEffects functionality"""

    def test_records_and_replays_values(self):
        effects = RecordedEffects()
        fn = AsyncMock(return_value={"status": "ok"})

        async def run_test():
            first = await effects.effect("job-1/0001/get_job", fn)
            second = await effects.effect("job-1/0001/get_job", fn)
            self.assertEqual(first, second)

        asyncio.run(run_test())

        fn.assert_awaited_once()
        self.assertTrue(effects.is_replay("job-1/0001/get_job"))

    def test_records_and_replays_operation_errors(self):
        effects = RecordedEffects()
        fn = AsyncMock(side_effect=NotFoundError("job-1", "couldn't be found"))

        async def run_test():
            for _ in range(2):
                with self.assertRaises(NotFoundError):
                    await effects.effect("k", fn)

        asyncio.run(run_test())

        fn.assert_awaited_once()

    def test_other_errors_not_recorded(self):
        effects = RecordedEffects()
        fn = AsyncMock(side_effect=RuntimeError("bug"))

        async def run_test():
            with self.assertRaises(RuntimeError):
                await effects.effect("k", fn)

        asyncio.run(run_test())

        self.assertFalse(effects.is_replay("k"))

    def test_passthrough(self):
        fn = AsyncMock(return_value=1)

        async def run_test():
            effects = PassthroughEffects()
            await effects.effect("k", fn)
            await effects.effect("k", fn)

        asyncio.run(run_test())

        self.assertEqual(fn.await_count, 2)


class TestEffectScope(unittest.TestCase):
    """Test effect key generation"""

    def test_keys_are_sequential(self):
        effects = RecordedEffects()
        scope = EffectScope(effects, "job-1")

        async def run_test():
            await scope.run("clock.now", AsyncMock(return_value=0.0))
            await scope.run("clock.sleep", AsyncMock(return_value=None))
            await scope.run("clock.now", AsyncMock(return_value=10.0))

        asyncio.run(run_test())

        self.assertEqual(
            list(effects.journal),
            ["job-1/0001/clock.now", "job-1/0002/clock.sleep", "job-1/0003/clock.now"],
        )

    def test_run_effect_without_scope(self):
        fn = AsyncMock(return_value=5)

        self.assertEqual(asyncio.run(run_effect(None, "x", fn)), 5)


class TestSagaReplay(unittest.TestCase):
    """Test that a replayed saga repeats its control flow without remote calls"""

    def coordinator(self, recognizer, store, effects):
        capabilities = ProviderCapabilities(
            jobs=recognizer,
            transcripts=recognizer,
            objects=store,
            vocabularies=recognizer,
            bucket="stt-audio",
        )
        return SagaCoordinator(capabilities, clock=FakeClock(), effects=effects)

    def test_full_replay(self):
        journal = {}
        request = make_request(language="en-US", vocabulary=("alpha", "beta"))

        recognizer = InMemoryRecognizer(
            job_statuses=[JobStatus.QUEUED, JobStatus.IN_PROGRESS, JobStatus.COMPLETED],
            transcript={"text": "hello world"},
        )
        first = asyncio.run(
            self.coordinator(recognizer, InMemoryObjectStore(), RecordedEffects(journal)).transcribe(
                request
            )
        )

        keys = list(journal)
        self.assertEqual(keys[0], "job-1/0001/get_job")
        self.assertEqual(keys[1], "job-1/0002/put_object")
        self.assertEqual(keys[2], "job-1/0003/create_vocabulary")
        self.assertEqual(keys[-1], "job-1/%04d/delete_object" % len(keys))

        # Every remote call on the replaying side would fail
        replay_recognizer = InMemoryRecognizer()
        for operation in ("get_job", "start_job", "create_vocabulary", "download"):
            replay_recognizer.failures[operation] = InternalServerError("job-1", "must not be called")
        replay_store = InMemoryObjectStore()

        second = asyncio.run(
            self.coordinator(replay_recognizer, replay_store, RecordedEffects(journal)).transcribe(
                request
            )
        )

        self.assertEqual(first, second)
        self.assertEqual(replay_recognizer.calls, [])
        self.assertEqual(replay_store.put_calls, [])
        self.assertEqual(replay_store.delete_calls, [])


if __name__ == "__main__":
    unittest.main()
