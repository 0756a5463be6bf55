"""
Amazon Transcribe implementation of VocabularyService and JobService
"""

import asyncio
from typing import Any, List, Optional

from ...core.exceptions import BadRequestError, error_from_aws
from ...core.interfaces import JobService, VocabularyService
from ...core.logging import get_logger
from ...core.models import (
    AudioConfig,
    JobInfo,
    JobStatus,
    MediaRef,
    TranscriptionConfig,
    VocabularyInfo,
    VocabularyStatus,
)

logger = get_logger(__name__)

JOB_STATUSES = {
    "QUEUED": JobStatus.QUEUED,
    "IN_PROGRESS": JobStatus.IN_PROGRESS,
    "COMPLETED": JobStatus.COMPLETED,
    "FAILED": JobStatus.FAILED,
}

VOCABULARY_STATES = {
    "PENDING": VocabularyStatus.PENDING,
    "READY": VocabularyStatus.READY,
    "FAILED": VocabularyStatus.FAILED,
}

# Upper bound Transcribe accepts for MaxSpeakerLabels
DEFAULT_MAX_SPEAKERS = 30


class AmazonTranscribeService(VocabularyService, JobService):
    """
    Amazon Transcribe batch jobs and custom vocabularies on boto3
    """

    def __init__(self, region_name: str = "us-east-1", client: Optional[Any] = None):
        """
        Initialize Amazon Transcribe service

        Args:
            region_name: AWS region
            client: Pre-built boto3 transcribe client (skips client creation)
        """
        self.region_name = (region_name or "us-east-1").strip() or "us-east-1"

        if client is None:
            import boto3

            client = boto3.client("transcribe", region_name=self.region_name)
        self.client = client

        logger.info(f"Initialized AmazonTranscribeService: {self.region_name}")

    async def _call(self, request_id: str, operation: str, **kwargs) -> dict:
        method = getattr(self.client, operation)
        try:
            return await asyncio.to_thread(method, **kwargs)
        except Exception as e:
            raise error_from_aws(request_id, f"Transcribe {operation}", e) from e

    # Vocabularies

    async def create_vocabulary(
        self, name: str, language: str, terms: List[str]
    ) -> VocabularyInfo:
        response = await self._call(
            name,
            "create_vocabulary",
            VocabularyName=name,
            LanguageCode=language,
            Phrases=list(terms),
        )
        return self._vocabulary_info(name, response)

    async def get_vocabulary(self, name: str) -> VocabularyInfo:
        response = await self._call(name, "get_vocabulary", VocabularyName=name)
        return self._vocabulary_info(name, response)

    async def delete_vocabulary(self, name: str) -> None:
        await self._call(name, "delete_vocabulary", VocabularyName=name)

    def _vocabulary_info(self, name: str, response: dict) -> VocabularyInfo:
        state = str(response.get("VocabularyState", "")).upper()
        status = VOCABULARY_STATES.get(state)
        if status is None:
            raise BadRequestError(name, f"Unexpected vocabulary state: {state}")

        return VocabularyInfo(
            name=response.get("VocabularyName", name),
            status=status,
            failure_reason=response.get("FailureReason"),
        )

    # Jobs

    async def start_job(
        self,
        name: str,
        media: MediaRef,
        audio_config: AudioConfig,
        transcription_config: Optional[TranscriptionConfig],
        vocabulary_name: Optional[str] = None,
    ) -> JobInfo:
        if media.is_inline:
            raise BadRequestError(name, "Amazon Transcribe requires staged media")

        params = self.build_job_params(
            name, media.uri, audio_config, transcription_config, vocabulary_name
        )
        response = await self._call(name, "start_transcription_job", **params)
        return self._job_info(name, response.get("TranscriptionJob") or {})

    async def get_job(self, name: str) -> JobInfo:
        response = await self._call(
            name, "get_transcription_job", TranscriptionJobName=name
        )
        return self._job_info(name, response.get("TranscriptionJob") or {})

    async def delete_job(self, name: str) -> None:
        await self._call(name, "delete_transcription_job", TranscriptionJobName=name)

    @staticmethod
    def build_job_params(
        name: str,
        media_uri: str,
        audio_config: AudioConfig,
        transcription_config: Optional[TranscriptionConfig],
        vocabulary_name: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Build StartTranscriptionJob parameters

        Model and vocabulary only apply with an explicit language; without
        one, Transcribe identifies the language itself.
        """
        params: dict[str, Any] = {
            "TranscriptionJobName": name,
            "Media": {"MediaFileUri": media_uri},
            "MediaFormat": audio_config.format,
        }
        if audio_config.sample_rate_hz:
            params["MediaSampleRateHertz"] = audio_config.sample_rate_hz

        settings: dict[str, Any] = {}
        config = transcription_config

        if config is not None and config.language:
            params["LanguageCode"] = config.language
            if config.model:
                params["ModelSettings"] = {"LanguageModelName": config.model}
            if vocabulary_name:
                settings["VocabularyName"] = vocabulary_name
        else:
            params["IdentifyLanguage"] = True

        if config is not None:
            if config.enable_multi_channel and audio_config.channels == 2:
                settings["ChannelIdentification"] = True
            if config.enable_diarization:
                settings["ShowSpeakerLabels"] = True
                settings["MaxSpeakerLabels"] = config.max_speakers or DEFAULT_MAX_SPEAKERS

        if settings:
            params["Settings"] = settings

        return params

    def _job_info(self, name: str, job: dict) -> JobInfo:
        raw_status = str(job.get("TranscriptionJobStatus", "")).upper()
        status = JOB_STATUSES.get(raw_status)
        if status is None:
            raise BadRequestError(name, f"Unexpected transcription job status: {raw_status}")

        transcript = job.get("Transcript") or {}
        model_settings = job.get("ModelSettings") or {}

        return JobInfo(
            name=job.get("TranscriptionJobName", name),
            status=status,
            transcript_uri=(
                transcript.get("TranscriptFileUri")
                or transcript.get("RedactedTranscriptFileUri")
            ),
            failure_reason=job.get("FailureReason"),
            language=job.get("LanguageCode"),
            model=model_settings.get("LanguageModelName"),
        )
