"""
Unit tests for the transcription saga
"""

import asyncio
import unittest

from stt_services.core.exceptions import (
    AccessDeniedError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
)
from stt_services.core.models import JobStatus, VocabularyStatus
from stt_services.orchestration.saga import ProviderCapabilities, SagaCoordinator
from stt_services.storage.providers.memory import InMemoryObjectStore
from stt_services.transcription.providers.memory import InMemoryRecognizer
from tests.services.fakes import FakeClock, make_request

OBJECT = ("stt-audio", "job-1/audio.wav")


class SagaTestCase(unittest.TestCase):
    """Saga wired to in-memory providers and a simulated clock"""

    def setUp(self):
        """Set up test fixtures"""
        self.store = InMemoryObjectStore()
        self.recognizer = InMemoryRecognizer(transcript={"text": "hello world"})
        self.clock = FakeClock()

    def coordinator(self, **kwargs) -> SagaCoordinator:
        capabilities = ProviderCapabilities(
            jobs=self.recognizer,
            transcripts=self.recognizer,
            objects=kwargs.pop("objects", self.store),
            vocabularies=kwargs.pop("vocabularies", self.recognizer),
            bucket="stt-audio",
            inline_max_bytes=kwargs.pop("inline_max_bytes", 0),
        )
        return SagaCoordinator(capabilities, clock=self.clock, **kwargs)

    def transcribe(self, request, **kwargs):
        return asyncio.run(self.coordinator(**kwargs).transcribe(request))

    def assert_released_once(self, vocabulary=True):
        self.assertEqual(self.store.delete_calls, [OBJECT])
        self.assertEqual(self.recognizer.count("delete_vocabulary"), 1 if vocabulary else 0)


class TestRoundTrip(SagaTestCase):
    """Test a full successful run"""

    def test_round_trip(self):
        request = make_request(language="en-US", vocabulary=("alpha", "beta"))

        response = self.transcribe(request)

        self.assertEqual(
            response.to_dict(),
            {
                "request_id": "job-1",
                "audio_size_bytes": 15,
                "language": "en-US",
                "model": None,
                "transcript": {"text": "hello world"},
            },
        )
        self.assertEqual(self.store.put_calls, [OBJECT])
        self.assert_released_once()
        self.assertEqual(self.recognizer.count("start_job"), 1)

    def test_job_uses_staged_uri_and_vocabulary(self):
        request = make_request(language="en-US", vocabulary=("alpha",))

        self.transcribe(request)

        metadata = self.recognizer.jobs["job-1"].metadata
        self.assertEqual(metadata["media_uri"], "memory://stt-audio/job-1/audio.wav")
        self.assertEqual(metadata["vocabulary_name"], "job-1")

    def test_no_vocabulary(self):
        self.transcribe(make_request(language="en-US"))

        self.assertEqual(self.recognizer.count("create_vocabulary"), 0)
        self.assert_released_once(vocabulary=False)

    def test_job_record_kept(self):
        self.transcribe(make_request())

        self.assertIn("job-1", self.recognizer.jobs)
        self.assertEqual(self.recognizer.count("delete_job"), 0)

    def test_detected_language(self):
        self.recognizer.detected_language = "es-ES"

        response = self.transcribe(make_request())

        self.assertEqual(response.language, "es-ES")
        self.assertIsNone(response.model)

    def test_language_unknown(self):
        self.assertEqual(self.transcribe(make_request()).language, "")

    def test_model_echoed(self):
        response = self.transcribe(make_request(language="en-US", model="medical"))

        self.assertEqual(response.model, "medical")

    def test_inline_audio(self):
        self.recognizer.inline = True

        response = self.transcribe(make_request(), inline_max_bytes=1024)

        self.assertEqual(response.transcript, {"text": "hello world"})
        self.assertEqual(self.store.put_calls, [])
        self.assertEqual(self.store.delete_calls, [])
        self.assertEqual(self.recognizer.jobs["job-1"].metadata["inline_bytes"], 15)

    def test_without_object_store(self):
        self.recognizer.inline = True

        self.transcribe(make_request(), objects=None)

        self.assertIsNone(self.recognizer.jobs["job-1"].metadata["media_uri"])

    def test_completed_at_submission_skips_waiting(self):
        self.recognizer.job_statuses = [JobStatus.COMPLETED]

        self.transcribe(make_request())

        self.assertEqual(self.clock.sleeps, [])


class TestValidation(SagaTestCase):
    """Test that invalid requests never reach a provider"""

    def assert_no_remote_calls(self):
        self.assertEqual(self.recognizer.calls, [])
        self.assertEqual(self.store.put_calls, [])
        self.assertEqual(self.store.delete_calls, [])

    def test_vocabulary_without_language(self):
        with self.assertRaises(BadRequestError):
            self.transcribe(make_request(vocabulary=("alpha",)))

        self.assert_no_remote_calls()

    def test_model_without_language(self):
        with self.assertRaises(BadRequestError):
            self.transcribe(make_request(model="medical"))

        self.assert_no_remote_calls()

    def test_reserved_request_id(self):
        with self.assertRaises(BadRequestError):
            self.transcribe(make_request(request_id="aws-x"))

        self.assert_no_remote_calls()

    def test_dotted_request_id_accepted(self):
        response = self.transcribe(make_request(request_id="job.1"))

        self.assertEqual(response.request_id, "job.1")

    def test_vocabulary_without_vocabulary_service(self):
        with self.assertRaises(BadRequestError):
            self.transcribe(make_request(language="en-US", vocabulary=("alpha",)), vocabularies=None)

        self.assert_no_remote_calls()


class TestCompensation(SagaTestCase):
    """Test that every failure releases what was created, exactly once"""

    def request(self):
        return make_request(language="en-US", vocabulary=("alpha",))

    def test_upload_failure(self):
        self.store.fail_put = AccessDeniedError("job-1", "denied")

        with self.assertRaises(AccessDeniedError):
            self.transcribe(self.request())

        self.assert_released_once(vocabulary=False)
        self.assertEqual(self.recognizer.count("create_vocabulary"), 0)

    def test_vocabulary_failure(self):
        self.recognizer.vocabulary_statuses = [VocabularyStatus.PENDING, VocabularyStatus.FAILED]
        self.recognizer.failure_reason = "Invalid phrase"

        with self.assertRaises(BadRequestError) as ctx:
            self.transcribe(self.request())

        self.assertEqual(ctx.exception.provider_error, "Vocabulary creation failed: Invalid phrase")
        self.assert_released_once()
        self.assertEqual(self.recognizer.count("start_job"), 0)

    def test_vocabulary_timeout(self):
        self.recognizer.vocabulary_statuses = [VocabularyStatus.PENDING]

        with self.assertRaises(BadRequestError) as ctx:
            self.transcribe(self.request())

        self.assertEqual(ctx.exception.provider_error, "Vocabulary creation timed out")
        self.assert_released_once()

    def test_vocabulary_create_failure(self):
        self.recognizer.failures["create_vocabulary"] = InternalServerError("job-1", "unavailable")

        with self.assertRaises(InternalServerError):
            self.transcribe(self.request())

        # The create may have taken effect before the error surfaced
        self.assert_released_once()
        self.assertEqual(self.recognizer.count("start_job"), 0)

    def test_leftover_vocabulary_is_recreated(self):
        # A crashed attempt created the vocabulary but never submitted the job
        self.recognizer.seed_vocabulary("job-1")

        first = self.transcribe(self.request())
        second = self.transcribe(self.request())

        self.assertEqual(first.transcript, {"text": "hello world"})
        self.assertEqual(first, second)
        operations = [
            operation for operation, _ in self.recognizer.calls if "vocabulary" in operation
        ]
        self.assertEqual(
            operations[:3], ["create_vocabulary", "delete_vocabulary", "create_vocabulary"]
        )
        self.assertNotIn("job-1", self.recognizer.vocabularies)

    def test_submit_failure(self):
        self.recognizer.failures["start_job"] = InternalServerError("job-1", "unavailable")

        with self.assertRaises(InternalServerError):
            self.transcribe(self.request())

        self.assert_released_once()

    def test_wait_timeout(self):
        self.recognizer.job_statuses = [JobStatus.QUEUED, JobStatus.IN_PROGRESS]

        with self.assertRaises(BadRequestError) as ctx:
            self.transcribe(self.request(), job_timeout_seconds=60)

        self.assertEqual(ctx.exception.provider_error, "Transcription job timed out")
        self.assert_released_once()

    def test_job_failure(self):
        self.recognizer.job_statuses = [JobStatus.QUEUED, JobStatus.FAILED]
        self.recognizer.failure_reason = "Unsupported codec"

        with self.assertRaises(BadRequestError) as ctx:
            self.transcribe(self.request())

        self.assertEqual(ctx.exception.provider_error, "Transcription job failed: Unsupported codec")
        self.assert_released_once()

    def test_fetch_failure(self):
        self.recognizer.failures["download"] = ForbiddenError("job-1", "expired")

        with self.assertRaises(ForbiddenError):
            self.transcribe(self.request())

        self.assert_released_once()

    def test_cleanup_errors_do_not_replace_original(self):
        self.recognizer.failures["start_job"] = InternalServerError("job-1", "unavailable")
        self.recognizer.failures["delete_vocabulary"] = AccessDeniedError("job-1", "denied")
        self.store.fail_delete = AccessDeniedError("job-1", "denied")

        with self.assertRaises(InternalServerError):
            self.transcribe(self.request())

        self.assert_released_once()

    def test_lookup_error_propagates_without_side_effects(self):
        self.recognizer.failures["get_job"] = AccessDeniedError("job-1", "denied")

        with self.assertRaises(AccessDeniedError):
            self.transcribe(self.request())

        self.assertEqual(self.store.put_calls, [])
        self.assertEqual(self.store.delete_calls, [])
        self.assertEqual(self.recognizer.count("start_job"), 0)


class TestIdempotentResume(SagaTestCase):
    """Test re-invocation with the same request id"""

    def test_resume_in_progress_job(self):
        self.recognizer.seed_job(
            "job-1", [JobStatus.IN_PROGRESS, JobStatus.IN_PROGRESS, JobStatus.COMPLETED]
        )

        response = self.transcribe(make_request())

        self.assertEqual(response.transcript, {"text": "hello world"})
        self.assertEqual(self.recognizer.count("start_job"), 0)
        self.assertEqual(self.store.put_calls, [])
        self.assertEqual(self.recognizer.count("get_job"), 2)
        self.assertEqual(self.store.delete_calls, [OBJECT])

    def test_completed_job_short_circuits(self):
        self.recognizer.seed_job("job-1", [JobStatus.COMPLETED])

        response = self.transcribe(make_request(language="en-US", vocabulary=("alpha",)))

        self.assertEqual(response.transcript, {"text": "hello world"})
        self.assertEqual(self.recognizer.count("start_job"), 0)
        self.assertEqual(self.recognizer.count("create_vocabulary"), 0)
        self.assertEqual(self.clock.sleeps, [])
        self.assert_released_once()

    def test_second_call_after_success(self):
        first = self.transcribe(make_request())
        second = self.transcribe(make_request())

        self.assertEqual(first, second)
        self.assertEqual(self.recognizer.count("start_job"), 1)

    def test_stale_failure_recovery(self):
        self.recognizer.seed_job("job-1", [JobStatus.FAILED], failure_reason="Bad audio")
        self.recognizer.seed_vocabulary("job-1")
        self.store.objects[OBJECT] = b"old"

        response = self.transcribe(make_request(language="en-US", vocabulary=("alpha",)))

        self.assertEqual(response.transcript, {"text": "hello world"})

        operations = [operation for operation, _ in self.recognizer.calls]
        self.assertLess(operations.index("delete_vocabulary"), operations.index("create_vocabulary"))
        self.assertLess(operations.index("delete_job"), operations.index("start_job"))
        self.assertEqual(self.recognizer.count("start_job"), 1)

        # Stale object deleted before the new upload, new object deleted after the run
        self.assertEqual(self.store.delete_calls, [OBJECT, OBJECT])
        self.assertEqual(self.store.put_calls, [OBJECT])
        self.assertIsNone(self.store.get(*OBJECT))

    def test_stale_teardown_failures_are_tolerated(self):
        self.recognizer.seed_job("job-1", [JobStatus.FAILED])
        self.recognizer.failures["delete_job"] = AccessDeniedError("job-1", "denied")

        # The stale job was not deleted, so the provider rejects the new one
        with self.assertRaises(ConflictError):
            self.transcribe(make_request())

        self.assertEqual(self.store.delete_calls, [OBJECT, OBJECT])


class TestConcurrentRuns(SagaTestCase):
    """Test that distinct requests on one coordinator do not interfere"""

    def test_distinct_ids(self):
        coordinator = self.coordinator()

        async def run_test():
            return await asyncio.gather(
                coordinator.transcribe(make_request(request_id="a-1")),
                coordinator.transcribe(make_request(request_id="b-2", language="en-US", vocabulary=("x",))),
            )

        first, second = asyncio.run(run_test())

        self.assertEqual(first.request_id, "a-1")
        self.assertEqual(second.request_id, "b-2")
        self.assertEqual(
            sorted(self.store.delete_calls),
            [("stt-audio", "a-1/audio.wav"), ("stt-audio", "b-2/audio.wav")],
        )
        self.assertEqual(self.recognizer.calls.count(("delete_vocabulary", "b-2")), 1)
        self.assertNotIn(("delete_vocabulary", "a-1"), self.recognizer.calls)


class TestNotFoundLookup(SagaTestCase):
    """Test that only NotFound means no prior job"""

    def test_not_found_starts_fresh(self):
        self.recognizer.failures["get_job"] = NotFoundError("job-1", "couldn't be found")
        self.recognizer.job_statuses = [JobStatus.COMPLETED]

        response = self.transcribe(make_request())

        self.assertEqual(response.transcript, {"text": "hello world"})
        self.assertEqual(self.recognizer.count("start_job"), 1)


if __name__ == "__main__":
    unittest.main()
