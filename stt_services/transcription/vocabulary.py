"""
Custom vocabulary provisioning
"""

import logging
from typing import List, Optional

from ..core.clock import SystemClock
from ..core.durability import EffectScope, run_effect
from ..core.exceptions import BadRequestError
from ..core.interfaces import Clock, VocabularyService
from ..core.models import VocabularyInfo, VocabularyStatus

logger = logging.getLogger(__name__)


class VocabularyProvisioner:
    """
    Creates a custom vocabulary named after the request, waits until the
    provider reports it ready, and deletes it afterwards.
    """

    POLL_INTERVAL_SECONDS = 10.0
    DEFAULT_TIMEOUT_SECONDS = 300.0

    def __init__(
        self,
        service: VocabularyService,
        clock: Optional[Clock] = None,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize vocabulary provisioner

        Args:
            service: Provider vocabulary service
            clock: Clock used by the readiness loop
            poll_interval_seconds: Fixed delay between readiness checks
            timeout_seconds: Maximum time to wait for readiness
        """
        self.service = service
        self.clock = clock or SystemClock()
        self.poll_interval_seconds = poll_interval_seconds
        self.timeout_seconds = timeout_seconds

    async def provision(
        self,
        request_id: str,
        language: str,
        terms: List[str],
        scope: Optional[EffectScope] = None,
    ) -> VocabularyStatus:
        """
        Create the vocabulary and wait until it is ready

        Args:
            request_id: Request id (names the vocabulary)
            language: Language code of the terms
            terms: Phrases to boost
            scope: Effect scope of the running saga

        Returns:
            VocabularyStatus.READY

        Raises:
            BadRequestError: If the vocabulary fails or is not ready in time
        """
        info = await self.create(request_id, language, terms, scope)
        return await self.ensure_ready(request_id, info, scope)

    async def create(
        self,
        request_id: str,
        language: str,
        terms: List[str],
        scope: Optional[EffectScope] = None,
    ) -> VocabularyInfo:
        """Issue the create call; once it returns, a remote vocabulary exists"""
        logger.info(f"Creating vocabulary {request_id} ({language}, {len(terms)} terms)")
        return await run_effect(
            scope,
            "create_vocabulary",
            lambda: self.service.create_vocabulary(request_id, language, list(terms)),
        )

    async def ensure_ready(
        self,
        request_id: str,
        info: VocabularyInfo,
        scope: Optional[EffectScope] = None,
    ) -> VocabularyStatus:
        """Resolve the creation state, polling while it is pending"""
        if info.status == VocabularyStatus.READY:
            return VocabularyStatus.READY

        if info.status == VocabularyStatus.FAILED:
            raise BadRequestError(
                request_id,
                f"Vocabulary creation failed: {info.failure_reason or 'Unknown error'}",
            )

        return await self.wait_until_ready(request_id, scope=scope)

    async def wait_until_ready(
        self,
        name: str,
        timeout_seconds: Optional[float] = None,
        scope: Optional[EffectScope] = None,
    ) -> VocabularyStatus:
        """
        Poll the vocabulary at a fixed interval until it leaves PENDING

        Args:
            name: Vocabulary name
            timeout_seconds: Maximum time to wait (defaults to the configured one)
            scope: Effect scope of the running saga

        Returns:
            VocabularyStatus.READY

        Raises:
            BadRequestError: On FAILED or when the timeout is exceeded
        """
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        started_at = await run_effect(scope, "clock.now", self._now)

        while True:
            elapsed = await run_effect(scope, "clock.now", self._now) - started_at
            if elapsed > timeout:
                logger.warning(f"Vocabulary {name} not ready after {elapsed:.0f}s")
                raise BadRequestError(name, "Vocabulary creation timed out")

            await run_effect(
                scope, "clock.sleep", lambda: self.clock.sleep(self.poll_interval_seconds)
            )

            info = await run_effect(
                scope, "get_vocabulary", lambda: self.service.get_vocabulary(name)
            )

            if info.status == VocabularyStatus.READY:
                logger.info(f"Vocabulary {name} is ready")
                return VocabularyStatus.READY

            if info.status == VocabularyStatus.FAILED:
                raise BadRequestError(
                    name,
                    f"Vocabulary creation failed: {info.failure_reason or 'Unknown error'}",
                )

            logger.debug(f"Vocabulary {name} still pending")

    async def release(self, request_id: str, scope: Optional[EffectScope] = None) -> bool:
        """
        Delete the vocabulary; failures are logged, never raised

        Returns:
            True if deleted successfully
        """
        try:
            await run_effect(
                scope, "delete_vocabulary", lambda: self.service.delete_vocabulary(request_id)
            )
            logger.info(f"Released vocabulary {request_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to delete vocabulary {request_id}: {e}")
            return False

    async def _now(self) -> float:
        return self.clock.now()
