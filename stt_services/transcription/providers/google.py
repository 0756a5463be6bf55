"""
Google Cloud Speech-to-Text v2 implementation of JobService
"""

import asyncio
import os
from typing import Any, Optional

from ...core.exceptions import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    UnknownError,
    error_from_google,
)
from ...core.interfaces import JobService
from ...core.logging import get_logger
from ...core.models import (
    AudioConfig,
    JobInfo,
    JobStatus,
    MediaRef,
    TranscriptionConfig,
)

logger = get_logger(__name__)

# Formats the recognizer cannot detect from a container header
EXPLICIT_ENCODINGS = {
    "pcm": "LINEAR16",
    "linear16": "LINEAR16",
}

DEFAULT_MIN_SPEAKERS = 2
DEFAULT_MAX_SPEAKERS = 6


def _seconds(offset: Any) -> Optional[float]:
    if offset is None:
        return None
    total_seconds = getattr(offset, "total_seconds", None)
    return total_seconds() if callable(total_seconds) else offset


def transcript_to_dict(results: Any) -> dict[str, Any]:
    """
    Convert Speech-to-Text recognition results into a JSON-ready transcript

    Only the top alternative of each result is kept.
    """
    entries = []
    for result in results or []:
        alternatives = list(getattr(result, "alternatives", None) or [])
        if not alternatives:
            continue
        top = alternatives[0]

        entries.append(
            {
                "transcript": (getattr(top, "transcript", "") or "").strip(),
                "confidence": getattr(top, "confidence", None),
                "channel_tag": getattr(result, "channel_tag", 0),
                "language_code": getattr(result, "language_code", "") or None,
                "words": [
                    {
                        "word": getattr(word, "word", ""),
                        "start_seconds": _seconds(getattr(word, "start_offset", None)),
                        "end_seconds": _seconds(getattr(word, "end_offset", None)),
                        "confidence": getattr(word, "confidence", None),
                        "speaker_label": getattr(word, "speaker_label", "") or None,
                    }
                    for word in getattr(top, "words", None) or []
                ],
            }
        )

    return {
        "text": " ".join(entry["transcript"] for entry in entries if entry["transcript"]),
        "results": entries,
    }


class GoogleSpeechService(JobService):
    """
    Speech-to-Text v2 recognition on google-cloud-speech

    Inline media runs a synchronous recognize and is complete on
    submission. Staged ``gs://`` media runs a batch recognize operation with
    an inline response. Batch operations get server-assigned names, so jobs
    are tracked by request id for the lifetime of the service. Vocabulary
    terms travel with each request as an inline phrase set.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: str = "global",
        default_model: str = "chirp_3",
        credentials_path: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        """
        Initialize Google Speech-to-Text service

        Args:
            project_id: GCP project ID, detected from ADC if None
            location: Recognizer location; anything but global uses a regional endpoint
            default_model: Model used when a request names none
            credentials_path: Path to service account JSON file, ADC if None
            client: Pre-built SpeechClient (skips client creation)
        """
        self.project_id = self._resolve_project_id(project_id or os.environ.get("PROJECT_ID"))
        self.location = (location or "global").strip().lower() or "global"
        self.default_model = default_model

        if client is None:
            client = self._create_client(self.location, credentials_path)
        self.client = client

        self._jobs: dict[str, JobInfo] = {}
        self._operations: dict[str, tuple[Any, str]] = {}

        logger.info(f"Initialized GoogleSpeechService: {self.project_id}/{self.location}")

    @staticmethod
    def _resolve_project_id(project_id: Optional[str]) -> str:
        if project_id:
            return project_id

        import google.auth

        try:
            _, detected = google.auth.default()
        except Exception as e:
            raise ConfigurationError(f"Failed to resolve Google credentials: {str(e)}") from e

        if not detected:
            raise ConfigurationError("No Google Cloud project ID configured or detected")
        return detected

    @staticmethod
    def _create_client(location: str, credentials_path: Optional[str] = None):
        from google.api_core.client_options import ClientOptions
        from google.cloud.speech_v2 import SpeechClient

        options = None
        if location != "global":
            options = ClientOptions(api_endpoint=f"{location}-speech.googleapis.com")

        try:
            if credentials_path and os.path.exists(credentials_path):
                return SpeechClient.from_service_account_file(
                    credentials_path, client_options=options
                )
            return SpeechClient(client_options=options)
        except Exception as e:
            raise ConfigurationError(f"Failed to initialize Speech-to-Text client: {str(e)}") from e

    @property
    def recognizer(self) -> str:
        return f"projects/{self.project_id}/locations/{self.location}/recognizers/_"

    async def _call(self, request_id: str, operation: str, method, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(method, **kwargs)
        except Exception as e:
            raise error_from_google(request_id, f"Speech-to-Text {operation}", e) from e

    async def start_job(
        self,
        name: str,
        media: MediaRef,
        audio_config: AudioConfig,
        transcription_config: Optional[TranscriptionConfig],
        vocabulary_name: Optional[str] = None,
    ) -> JobInfo:
        if name in self._jobs:
            raise ConflictError(name, f"Transcription job {name} already exists")

        config = self.build_recognition_config(
            audio_config, transcription_config, self.default_model
        )

        if media.is_inline:
            response = await self._call(
                name,
                "recognize",
                self.client.recognize,
                request={
                    "recognizer": self.recognizer,
                    "config": config,
                    "content": media.content,
                },
            )
            job = self._completed(name, response.results, config["model"])
        else:
            operation = await self._call(
                name,
                "batch_recognize",
                self.client.batch_recognize,
                request={
                    "recognizer": self.recognizer,
                    "config": config,
                    "files": [{"uri": media.uri}],
                    "recognition_output_config": {"inline_response_config": {}},
                },
            )
            self._operations[name] = (operation, media.uri)
            job = JobInfo(
                name=name,
                status=JobStatus.IN_PROGRESS,
                model=config["model"],
                metadata={"operation_name": operation.operation.name, "media_uri": media.uri},
            )
            logger.info(f"Started batch recognize for {name}: {job.metadata['operation_name']}")

        self._jobs[name] = job
        return job

    async def get_job(self, name: str) -> JobInfo:
        job = self._jobs.get(name)
        if job is None:
            raise NotFoundError(name, f"Transcription job {name} not found")
        if job.status.is_terminal:
            return job

        operation, uri = self._operations[name]
        done = await self._call(name, "get_operation", operation.done)
        if not done:
            return job

        # A finished operation holds its outcome locally
        error = operation.exception()
        if error is not None:
            job = JobInfo(
                name=name,
                status=JobStatus.FAILED,
                failure_reason=getattr(error, "message", None) or str(error),
                model=job.model,
                metadata=job.metadata,
            )
        else:
            job = self._batch_result(name, operation.result(), uri, job)

        self._jobs[name] = job
        return job

    async def delete_job(self, name: str) -> None:
        if self._jobs.pop(name, None) is None:
            raise NotFoundError(name, f"Transcription job {name} not found")
        self._operations.pop(name, None)

    def _batch_result(self, name: str, response: Any, uri: str, job: JobInfo) -> JobInfo:
        results = response.results
        if uri not in results:
            raise UnknownError(
                name, f"Batch recognize completed without a result for {uri}"
            )

        file_result = results[uri]
        file_error = getattr(file_result, "error", None)
        if file_error is not None and getattr(file_error, "code", 0):
            return JobInfo(
                name=name,
                status=JobStatus.FAILED,
                failure_reason=file_error.message,
                model=job.model,
                metadata=job.metadata,
            )

        completed = self._completed(name, file_result.inline_result.transcript.results, job.model)
        completed.metadata = job.metadata
        return completed

    @staticmethod
    def _completed(name: str, results: Any, model: Optional[str]) -> JobInfo:
        transcript = transcript_to_dict(results)
        language = next(
            (entry["language_code"] for entry in transcript["results"] if entry["language_code"]),
            None,
        )
        return JobInfo(
            name=name,
            status=JobStatus.COMPLETED,
            transcript=transcript,
            language=language,
            model=model,
        )

    @staticmethod
    def build_recognition_config(
        audio_config: AudioConfig,
        transcription_config: Optional[TranscriptionConfig],
        default_model: str = "chirp_3",
    ) -> dict[str, Any]:
        """
        Build a Speech-to-Text v2 RecognitionConfig

        Without a language the recognizer detects it ("auto"). Multi-channel
        recognition is not available on the latest_short model.
        """
        config = transcription_config or TranscriptionConfig()
        model = config.model or default_model

        features: dict[str, Any] = {
            "enable_word_time_offsets": True,
            "enable_word_confidence": True,
            "enable_automatic_punctuation": True,
            "max_alternatives": 1,
        }
        if (
            config.enable_multi_channel
            and (audio_config.channels or 0) > 1
            and model.lower() != "latest_short"
        ):
            features["multi_channel_mode"] = "SEPARATE_RECOGNITION_PER_CHANNEL"
        if config.enable_diarization:
            max_speakers = config.max_speakers or DEFAULT_MAX_SPEAKERS
            features["diarization_config"] = {
                "min_speaker_count": min(DEFAULT_MIN_SPEAKERS, max_speakers),
                "max_speaker_count": max_speakers,
            }

        recognition: dict[str, Any] = {
            "model": model,
            "language_codes": [config.language] if config.language else ["auto"],
            "features": features,
        }

        encoding = EXPLICIT_ENCODINGS.get(audio_config.format.lower())
        if encoding:
            decoding: dict[str, Any] = {"encoding": encoding}
            if audio_config.sample_rate_hz:
                decoding["sample_rate_hertz"] = audio_config.sample_rate_hz
            if audio_config.channels:
                decoding["audio_channel_count"] = audio_config.channels
            recognition["explicit_decoding_config"] = decoding
        else:
            recognition["auto_decoding_config"] = {}

        if config.vocabulary:
            recognition["adaptation"] = {
                "phrase_sets": [
                    {"inline_phrase_set": {"phrases": [{"value": term} for term in config.vocabulary]}}
                ]
            }

        return recognition
