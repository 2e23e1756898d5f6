# classes/deploy_poller.py

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from classes.errors import DeployError, DeployErrorCode
from classes.netlify_client import NetlifyClient

logger = logging.getLogger("sitedrop_backend")


class DeployState(str, Enum):
    NEW = "new"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    PREPARING = "preparing"
    PREPARED = "prepared"
    PROCESSING = "processing"
    BUILDING = "building"
    READY = "ready"
    ERROR = "error"
    FAILED = "failed"

    @classmethod
    def parse(cls, raw: Any) -> Optional["DeployState"]:
        try:
            return cls(str(raw).lower())
        except ValueError:
            return None

    @property
    def is_failure(self) -> bool:
        return self in (DeployState.ERROR, DeployState.FAILED)


@dataclass(frozen=True)
class PollSettings:
    """
    Backoff between status polls: delay starts at `initial_delay`, is multiplied
    by `growth` after every poll and capped at `max_delay`. `timeout` is the
    overall wall-clock budget in seconds.
    """
    initial_delay: float = 1.0
    growth: float = 1.5
    max_delay: float = 8.0
    timeout: float = 90.0

    def __post_init__(self):
        if self.growth <= 1.0:
            raise ValueError("growth must be > 1")
        if self.initial_delay <= 0 or self.max_delay < self.initial_delay:
            raise ValueError("need 0 < initial_delay <= max_delay")


class DeployPoller:
    def __init__(
        self,
        client: NetlifyClient,
        settings: Optional[PollSettings] = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.settings = settings or PollSettings()
        self._sleep = sleep
        self._clock = clock

    async def await_ready(self, deploy_id: str, max_wait: Optional[float] = None) -> Dict[str, Any]:
        """
        Poll until the deploy is ready and return its payload.

        - error/failed      -> DEPLOY_FAILED right away
        - non-2xx poll      -> PROVIDER_REQUEST_FAILED right away (from the client)
        - budget used up    -> DEPLOY_TIMEOUT
        """
        budget = self.settings.timeout if max_wait is None else max_wait
        started = self._clock()
        delay = self.settings.initial_delay
        polls = 0

        while self._clock() - started < budget:
            deploy = await self.client.get_deploy(deploy_id)
            polls += 1
            raw_state = deploy.get("state")
            state = DeployState.parse(raw_state)

            if state is DeployState.READY:
                logger.info(f"Deploy {deploy_id} ready after {polls} poll(s)")
                return deploy

            if state is not None and state.is_failure:
                logger.warning(f"Deploy {deploy_id} ended in state {raw_state}: {deploy.get('error_message')}")
                raise DeployError(DeployErrorCode.DEPLOY_FAILED, f"deploy {deploy_id} is {raw_state}")

            remaining = budget - (self._clock() - started)
            if remaining <= 0:
                break

            logger.debug(f"Deploy {deploy_id} is {raw_state}, next poll in {min(delay, remaining):.1f}s")
            await self._sleep(min(delay, remaining))
            delay = min(delay * self.settings.growth, self.settings.max_delay)

        elapsed = self._clock() - started
        logger.warning(f"Deploy {deploy_id} not ready after {elapsed:.1f}s ({polls} polls)")
        raise DeployError(DeployErrorCode.DEPLOY_TIMEOUT, f"deploy {deploy_id} not ready after {elapsed:.1f}s")
