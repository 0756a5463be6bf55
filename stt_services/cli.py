"""
Command line host for single transcription requests
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config.factory import ServiceFactory
from .config.settings import Settings
from .core.exceptions import ConfigurationError, OperationError
from .core.logging import configure_logging
from .core.models import AudioConfig, TranscriptionConfig, TranscriptionRequest


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stt-transcribe",
        description="Transcribe an audio file with the configured speech-to-text provider",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Transcribe with automatic language detection
  stt-transcribe meeting.wav --request-id meeting-2024-05-01

  # Transcribe with a custom vocabulary
  stt-transcribe call.mp3 --request-id call.17 --language en-US --vocabulary Kubernetes Terraform

  # Use a configuration file instead of environment variables
  stt-transcribe call.flac --request-id call.18 --config config.json
        """,
    )
    parser.add_argument("audio", help="Audio file to transcribe")
    parser.add_argument(
        "--request-id",
        required=True,
        help="Caller-assigned id; re-running with the same id resumes the request",
    )
    parser.add_argument("--language", help="Language code (e.g., en-US); detected if omitted")
    parser.add_argument("--model", help="Custom language model (requires --language)")
    parser.add_argument(
        "--vocabulary",
        nargs="+",
        default=[],
        metavar="TERM",
        help="Custom vocabulary terms (requires --language)",
    )
    parser.add_argument("--diarization", action="store_true", help="Label speakers")
    parser.add_argument("--max-speakers", type=int, help="Maximum number of speakers")
    parser.add_argument(
        "--multi-channel", action="store_true", help="Transcribe channels separately"
    )
    parser.add_argument("--channels", type=int, help="Number of audio channels")
    parser.add_argument("--format", help="Audio format (defaults to the file extension)")
    parser.add_argument(
        "--config", "-c", help="Configuration file path (uses environment if not specified)"
    )
    return parser


def build_request(args: argparse.Namespace) -> TranscriptionRequest:
    """
    Read the audio file and turn parsed arguments into a request

    Raises:
        ValueError: If neither --format nor the file extension names a format
    """
    audio_path = Path(args.audio)
    audio_format = (args.format or audio_path.suffix.lstrip(".")).lower()
    if not audio_format:
        raise ValueError(f"Cannot determine audio format of {audio_path}, pass --format")

    return TranscriptionRequest(
        request_id=args.request_id,
        audio=audio_path.read_bytes(),
        audio_config=AudioConfig(format=audio_format, channels=args.channels),
        transcription_config=TranscriptionConfig(
            language=args.language,
            model=args.model,
            enable_diarization=args.diarization,
            max_speakers=args.max_speakers,
            vocabulary=tuple(args.vocabulary),
            enable_multi_channel=args.multi_channel,
        ),
    )


def run(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run one transcription

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_file(args.config) if args.config else Settings.from_env()
    except (ConfigurationError, FileNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.log_format, settings.service_name)

    try:
        request = build_request(args)
    except OSError as e:
        print(f"Cannot read audio file: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    try:
        service = ServiceFactory(settings).create_transcription_service()
        response = asyncio.run(service.transcribe(request))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except OperationError as e:
        print(json.dumps({"error": e.to_dict()}, indent=2), file=sys.stderr)
        return 1

    print(json.dumps(response.to_dict(), indent=2))
    return 0


def main():
    """Main CLI entry point"""
    sys.exit(run())


if __name__ == "__main__":
    main()
