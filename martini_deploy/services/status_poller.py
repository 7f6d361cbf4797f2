"""
Status Poller - confirms that deployed packages reach STARTED.

Per package:  WAITING -> STARTED    (status seen, stop immediately)
              WAITING -> TIMED_OUT  (max_attempts used up)

Failed requests and malformed bodies only mean "not started yet".
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence
from urllib.parse import quote

import httpx

from ..models import STARTED_STATUS, PollOutcome, PollState
from ..protocols import ITransport

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class StatusPoller:
    """Polls ``/esbapi/packages/{name}`` until STARTED or out of attempts."""

    def __init__(
        self,
        api_client: ITransport,
        max_attempts: int = 6,
        delay_seconds: float = 30.0,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._api = api_client
        self._max_attempts = max_attempts
        self._delay = delay_seconds
        self._sleep = sleep

    async def _check_once(self, name: str, outcome: PollOutcome) -> None:
        try:
            response = await self._api.get(
                f"/esbapi/packages/{quote(name, safe='')}",
                params={"version": "2"},
                retries=1,
            )
        except httpx.RequestError as exc:
            outcome.last_status = f"request error: {exc}"
            logger.debug(f"{name}: status request failed: {exc}")
            return

        if not 200 <= response.status_code < 300:
            outcome.last_status = f"HTTP {response.status_code}"
            logger.debug(f"{name}: status check returned HTTP {response.status_code}")
            return

        try:
            payload = response.json()
        except ValueError:
            outcome.last_status = "malformed body"
            logger.debug(f"{name}: status body is not JSON")
            return

        if not isinstance(payload, dict):
            outcome.last_status = "malformed body"
            return

        status = payload.get("status")
        outcome.last_status = "no status" if status is None else str(status)
        if status == STARTED_STATUS:
            outcome.state = PollState.STARTED
            outcome.payload = payload

    async def poll(self, name: str) -> PollOutcome:
        """Poll one package until it is in a terminal state."""
        outcome = PollOutcome(name=name)

        for attempt in range(1, self._max_attempts + 1):
            outcome.attempts = attempt
            await self._check_once(name, outcome)
            if outcome.state == PollState.STARTED:
                logger.info(f"{name} is STARTED (attempt {attempt}/{self._max_attempts})")
                return outcome

            logger.info(
                f"{name} not started yet ({outcome.last_status}), "
                f"attempt {attempt}/{self._max_attempts}"
            )
            if attempt < self._max_attempts:
                await self._sleep(self._delay)

        outcome.state = PollState.TIMED_OUT
        logger.warning(f"{name} did not reach {STARTED_STATUS} after {self._max_attempts} attempts")
        return outcome

    async def poll_all(self, names: Sequence[str]) -> List[PollOutcome]:
        """Poll every package concurrently; results keep the order of ``names``."""
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(self.poll(name)) for name in names]
        return [task.result() for task in tasks]
