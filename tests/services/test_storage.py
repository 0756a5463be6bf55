"""
Unit tests for object staging and stores
"""

import asyncio
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, Mock

from botocore.exceptions import ClientError

from stt_services.core.exceptions import (
    AccessDeniedError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
)
from stt_services.core.models import StagedObject
from stt_services.storage import (
    GCSObjectStore,
    InMemoryObjectStore,
    LocalObjectStore,
    ObjectStage,
    S3ObjectStore,
)


class TestObjectStage(unittest.TestCase):
    """Test ObjectStage functionality"""

    def setUp(self):
        """Set up test fixtures"""
        self.store = InMemoryObjectStore()
        self.stage = ObjectStage(self.store, "bucket")

    def test_object_key(self):
        self.assertEqual(ObjectStage.object_key("job-1", "wav"), "job-1/audio.wav")

    def test_stage_uploads_under_deterministic_key(self):
        async def run_test():
            staged = await self.stage.stage("job-1", b"audio", "wav")
            self.assertEqual(
                staged, StagedObject("bucket", "job-1/audio.wav", "memory://bucket/job-1/audio.wav")
            )
            self.assertEqual(self.store.get("bucket", "job-1/audio.wav"), b"audio")

        asyncio.run(run_test())

    def test_stage_failure_propagates(self):
        self.store.fail_put = AccessDeniedError("job-1", "denied")

        async def run_test():
            with self.assertRaises(AccessDeniedError):
                await self.stage.stage("job-1", b"audio", "wav")

        asyncio.run(run_test())

    def test_release(self):
        async def run_test():
            staged = await self.stage.stage("job-1", b"audio", "wav")
            self.assertTrue(await self.stage.release("job-1", staged))
            self.assertIsNone(self.store.get("bucket", "job-1/audio.wav"))

        asyncio.run(run_test())

    def test_release_failure_is_swallowed(self):
        self.store.fail_delete = InternalServerError("job-1", "unavailable")
        staged = self.stage.staged_object("job-1", "wav")

        async def run_test():
            with self.assertLogs("stt_services.storage.service", level="ERROR"):
                released = await self.stage.release("job-1", staged)
            self.assertFalse(released)

        asyncio.run(run_test())


class TestLocalObjectStore(unittest.TestCase):
    """Test LocalObjectStore functionality"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.store = LocalObjectStore(base_path=self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_put_and_delete(self):
        async def run_test():
            await self.store.put_object("job-1", "audio", "job-1/audio.wav", b"data")
            path = Path(self.temp_dir.name) / "audio" / "job-1" / "audio.wav"
            self.assertEqual(path.read_bytes(), b"data")

            await self.store.delete_object("job-1", "audio", "job-1/audio.wav")
            self.assertFalse(path.exists())
            self.assertFalse(path.parent.exists())

        asyncio.run(run_test())

    def test_delete_missing_object(self):
        async def run_test():
            await self.store.delete_object("job-1", "audio", "job-1/audio.wav")

        asyncio.run(run_test())

    def test_path_escape_rejected(self):
        async def run_test():
            with self.assertRaises(BadRequestError):
                await self.store.put_object("job-1", "audio", "../../escape.wav", b"data")

        asyncio.run(run_test())

    def test_object_uri(self):
        uri = self.store.object_uri("audio", "job-1/audio.wav")
        self.assertTrue(uri.startswith("file://"))
        self.assertTrue(uri.endswith("/audio/job-1/audio.wav"))


class TestS3ObjectStore(unittest.TestCase):
    """Test S3ObjectStore with a mocked boto3 client"""

    def setUp(self):
        self.client = Mock()
        self.store = S3ObjectStore(client=self.client)

    def test_object_uri(self):
        self.assertEqual(self.store.object_uri("b", "job-1/audio.wav"), "s3://b/job-1/audio.wav")

    def test_put_object(self):
        asyncio.run(self.store.put_object("job-1", "b", "job-1/audio.wav", b"data"))

        self.client.put_object.assert_called_once_with(
            Bucket="b", Key="job-1/audio.wav", Body=b"data"
        )

    def test_put_object_error_mapped(self):
        self.client.put_object.side_effect = ClientError(
            {
                "Error": {"Code": "AccessDenied", "Message": "Access Denied"},
                "ResponseMetadata": {"HTTPStatusCode": 403},
            },
            "PutObject",
        )

        async def run_test():
            with self.assertRaises(AccessDeniedError) as ctx:
                await self.store.put_object("job-1", "b", "k", b"data")
            self.assertEqual(ctx.exception.request_id, "job-1")

        asyncio.run(run_test())

    def test_delete_object(self):
        asyncio.run(self.store.delete_object("job-1", "b", "job-1/audio.wav"))

        self.client.delete_object.assert_called_once_with(Bucket="b", Key="job-1/audio.wav")


class GoogleNotFound(Exception):
    code = 404
    message = "No such object"


class TestGCSObjectStore(unittest.TestCase):
    """Test GCSObjectStore with a mocked storage client"""

    def setUp(self):
        self.client = MagicMock()
        self.blob = self.client.bucket.return_value.blob.return_value
        self.store = GCSObjectStore(project_id="project", client=self.client)

    def test_object_uri(self):
        self.assertEqual(self.store.object_uri("b", "k"), "gs://b/k")

    def test_put_object(self):
        asyncio.run(self.store.put_object("job-1", "b", "job-1/audio.flac", b"data"))

        self.client.bucket.assert_called_with("b")
        self.client.bucket.return_value.blob.assert_called_with("job-1/audio.flac")
        self.blob.upload_from_string.assert_called_once_with(
            b"data", content_type="application/octet-stream"
        )

    def test_put_object_error_mapped(self):
        self.blob.upload_from_string.side_effect = GoogleNotFound("missing bucket")

        async def run_test():
            with self.assertRaises(NotFoundError):
                await self.store.put_object("job-1", "b", "k", b"data")

        asyncio.run(run_test())

    def test_delete_missing_object_is_not_an_error(self):
        self.blob.delete.side_effect = GoogleNotFound("gone")

        asyncio.run(self.store.delete_object("job-1", "b", "k"))

        self.blob.delete.assert_called_once()


if __name__ == "__main__":
    unittest.main()
