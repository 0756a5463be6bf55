"""
Unit tests for job submission and polling
"""

import asyncio
import unittest
from unittest.mock import AsyncMock, Mock

from stt_services.core.exceptions import (
    AccessDeniedError,
    BadRequestError,
    NotFoundError,
    RateLimitError,
)
from stt_services.core.models import AudioConfig, JobInfo, JobStatus, MediaRef
from stt_services.transcription.jobs import JobRunner
from tests.services.fakes import FakeClock


def job(status, **fields):
    return JobInfo(name="job-1", status=status, **fields)


class TestJobRunner(unittest.TestCase):
    """Test JobRunner functionality"""

    def setUp(self):
        """Set up test fixtures"""
        self.service = Mock()
        self.service.start_job = AsyncMock(return_value=job(JobStatus.QUEUED))
        self.service.get_job = AsyncMock(return_value=job(JobStatus.COMPLETED))
        self.service.delete_job = AsyncMock(return_value=None)
        self.clock = FakeClock()
        self.runner = JobRunner(self.service, clock=self.clock)

    def test_submit(self):
        media = MediaRef(uri="s3://b/job-1/audio.wav")
        audio_config = AudioConfig(format="wav")

        result = asyncio.run(self.runner.submit("job-1", media, audio_config, None, "job-1"))

        self.assertEqual(result.status, JobStatus.QUEUED)
        self.service.start_job.assert_awaited_once_with("job-1", media, audio_config, None, "job-1")

    def test_submit_failed(self):
        self.service.start_job.return_value = job(JobStatus.FAILED, failure_reason="Bad media")

        async def run_test():
            with self.assertRaises(BadRequestError) as ctx:
                await self.runner.submit("job-1", MediaRef(uri="s3://b/k"), AudioConfig("wav"))
            self.assertEqual(
                ctx.exception.provider_error, "Transcription job creation failed: Bad media"
            )

        asyncio.run(run_test())

    def test_wait_sleeps_before_each_poll(self):
        self.service.get_job.side_effect = [
            job(JobStatus.QUEUED),
            job(JobStatus.IN_PROGRESS),
            job(JobStatus.COMPLETED, transcript_uri="https://x"),
        ]

        result = asyncio.run(self.runner.wait_for_completion("job-1"))

        self.assertEqual(result.transcript_uri, "https://x")
        self.assertEqual(self.clock.sleeps, [10.0, 10.0, 10.0])
        self.assertEqual(self.service.get_job.await_count, 3)

    def test_wait_failed(self):
        self.service.get_job.return_value = job(JobStatus.FAILED, failure_reason="Corrupt audio")

        async def run_test():
            with self.assertRaises(BadRequestError) as ctx:
                await self.runner.wait_for_completion("job-1")
            self.assertEqual(ctx.exception.provider_error, "Transcription job failed: Corrupt audio")

        asyncio.run(run_test())

    def test_wait_timeout_exactness(self):
        """Timeout fires only once elapsed time exceeds the bound"""
        self.service.get_job.return_value = job(JobStatus.IN_PROGRESS)
        started = self.clock.now()

        async def run_test():
            with self.assertRaises(BadRequestError) as ctx:
                await self.runner.wait_for_completion("job-1", timeout_seconds=60)
            self.assertEqual(ctx.exception.provider_error, "Transcription job timed out")

        asyncio.run(run_test())

        self.assertEqual(self.clock.now() - started, 70.0)
        self.assertEqual(self.service.get_job.await_count, 7)

    def test_wait_completes_at_bound(self):
        self.service.get_job.side_effect = [job(JobStatus.IN_PROGRESS)] * 5 + [
            job(JobStatus.COMPLETED)
        ]

        result = asyncio.run(self.runner.wait_for_completion("job-1", timeout_seconds=60))

        self.assertEqual(result.status, JobStatus.COMPLETED)

    def test_wait_poll_error_propagates(self):
        self.service.get_job.side_effect = RateLimitError("job-1", "throttled")

        async def run_test():
            with self.assertRaises(RateLimitError):
                await self.runner.wait_for_completion("job-1")

        asyncio.run(run_test())

    def test_default_timeout(self):
        self.assertEqual(self.runner.timeout_seconds, 6 * 3600.0)
        self.assertEqual(self.runner.poll_interval_seconds, 10.0)

    def test_lookup_not_found(self):
        self.service.get_job.side_effect = NotFoundError("job-1", "couldn't be found")

        self.assertIsNone(asyncio.run(self.runner.lookup("job-1")))

    def test_lookup_other_error_propagates(self):
        self.service.get_job.side_effect = AccessDeniedError("job-1", "denied")

        async def run_test():
            with self.assertRaises(AccessDeniedError):
                await self.runner.lookup("job-1")

        asyncio.run(run_test())

    def test_delete_failure_is_swallowed(self):
        self.service.delete_job.side_effect = AccessDeniedError("job-1", "denied")

        self.assertFalse(asyncio.run(self.runner.delete("job-1")))


if __name__ == "__main__":
    unittest.main()
