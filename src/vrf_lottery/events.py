from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Type, TypeVar

log = logging.getLogger(__name__)

# Recent notifications only; draw history is not kept.
DEFAULT_MAX_EVENTS = 1024


@dataclass(frozen=True)
class RaffleEntered:
    player: str


@dataclass(frozen=True)
class RequestedRaffleWinner:
    request_id: int


@dataclass(frozen=True)
class WinnerPicked:
    winner: str


E = TypeVar("E")


class EventLog:
    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        self.events: Deque[object] = deque(maxlen=max_events)

    def emit(self, event: object) -> None:
        self.events.append(event)
        log.info("Event %s", event)

    def of_type(self, cls: Type[E]) -> List[E]:
        return [e for e in self.events if isinstance(e, cls)]

    def last(self, cls: Type[E]) -> E | None:
        matches = self.of_type(cls)
        return matches[-1] if matches else None
