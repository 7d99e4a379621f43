"""
Upkeep keeper.

Polls the engine's eligibility check, triggers a draw when it turns true and
gives a polling oracle the chance to deliver fulfillments. Retrying a draw
that lost a race or hit an oracle outage is the keeper's job, never the
engine's. A failed payout is not retried: it propagates.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import httpx

from .engine import LotteryEngine
from .errors import OracleError, UpkeepNotNeeded
from .oracle import Coordinator

log = logging.getLogger(__name__)


class Keeper:
    def __init__(
        self,
        engine: LotteryEngine,
        coordinator: Optional[Coordinator] = None,
        poll_interval_s: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.engine = engine
        self.coordinator = coordinator if coordinator is not None else engine.coordinator
        self.poll_interval_s = poll_interval_s
        self.sleep = sleep

    def run_once(self) -> Optional[int]:
        """Returns the request id when this tick started a draw."""
        request_id = None
        upkeep_needed, _ = self.engine.check_upkeep(b"")
        if upkeep_needed:
            try:
                request_id = self.engine.perform_upkeep(b"")
                log.info("Draw started: request_id=%d", request_id)
            except UpkeepNotNeeded as e:
                log.warning("Upkeep lost a race, retrying next tick: %s", e)

        poll = getattr(self.coordinator, "poll", None)
        if poll is not None:
            delivered = poll()
            if delivered:
                log.info("Delivered %d fulfillment(s)", delivered)
        return request_id

    def run(self, max_ticks: Optional[int] = None) -> int:
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            try:
                self.run_once()
            except (OracleError, httpx.HTTPError) as e:
                log.error("Keeper tick failed, retrying next tick: %s", e)
            ticks += 1
            if max_ticks is None or ticks < max_ticks:
                self.sleep(self.poll_interval_s)
        return ticks
