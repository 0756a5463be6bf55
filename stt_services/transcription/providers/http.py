"""
HTTP implementation of TranscriptStore
"""

from typing import Any, Dict, Optional

import httpx

from ...core.exceptions import UnknownError, error_from_status
from ...core.interfaces import TranscriptStore
from ...core.logging import get_logger

logger = get_logger(__name__)


class HttpTranscriptStore(TranscriptStore):
    """
    Downloads transcript JSON from the (pre-signed) URL a job reports
    """

    def __init__(self, timeout_seconds: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize HTTP transcript store

        Args:
            timeout_seconds: Request timeout
            client: Shared AsyncClient (a short-lived one is used per call otherwise)
        """
        self.timeout_seconds = timeout_seconds
        self.client = client

    async def download(self, request_id: str, uri: str) -> Dict[str, Any]:
        try:
            if self.client is not None:
                response = await self.client.get(uri, headers={"Accept": "application/json"})
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.get(uri, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise UnknownError(request_id, f"Transcript download failed: {e}") from e

        if response.is_error:
            raise error_from_status(
                response.status_code,
                request_id,
                f"Transcript download failed: {response.text}",
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UnknownError(request_id, f"Transcript JSON parsing failed: {e}") from e

        if not isinstance(payload, dict):
            raise UnknownError(request_id, "Transcript payload is not a JSON object")

        logger.info(f"Downloaded transcript for {request_id}")
        return payload
