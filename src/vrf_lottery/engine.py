"""
Lottery engine: entry, upkeep eligibility, draw request and fulfillment.

One engine owns one round for its whole lifetime. A payout resets the round
in place. All mutating calls are serialized by the engine's lock.
"""
from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .accounts import derive_address, require_address
from .config import DrawConfig
from .draw import winner_index
from .errors import (
    InsufficientPayment,
    OnlyCoordinatorCanFulfill,
    PayoutFailed,
    RoundNotOpen,
    TransferRejected,
    UpkeepNotNeeded,
)
from .events import EventLog, RaffleEntered, RequestedRaffleWinner, WinnerPicked
from .ledger import Ledger
from .oracle import Coordinator, RandomWordsRequest

log = logging.getLogger(__name__)


class RaffleState(enum.Enum):
    OPEN = 0
    CALCULATING = 1


@dataclass
class LotteryRound:
    last_timestamp: float
    state: RaffleState = RaffleState.OPEN
    players: List[str] = field(default_factory=list)
    recent_winner: Optional[str] = None


class LotteryEngine:
    def __init__(
        self,
        config: DrawConfig,
        coordinator: Coordinator,
        ledger: Ledger,
        address: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        events: Optional[EventLog] = None,
    ) -> None:
        self.config = config
        self.coordinator = coordinator
        self.ledger = ledger
        self.address = require_address(address or derive_address("vrf-lottery"))
        self.clock = clock
        self.events = events if events is not None else EventLog()
        self.round = LotteryRound(last_timestamp=clock())
        self._lock = threading.RLock()

    # -- entry -------------------------------------------------------------

    def enter(self, sender: str, payment: int) -> None:
        with self._lock:
            if payment < self.config.entrance_fee:
                raise InsufficientPayment(payment, self.config.entrance_fee)
            if self.round.state is not RaffleState.OPEN:
                raise RoundNotOpen(self.round.state)

            require_address(sender)
            # Excess over the fee stays in the pot.
            self.ledger.transfer(sender, self.address, payment)
            self.round.players.append(sender)
            log.debug("Entered %s with %d (players=%d)",
                      sender, payment, len(self.round.players))
            self.events.emit(RaffleEntered(player=sender))

    # -- upkeep ------------------------------------------------------------

    def check_upkeep(self, check_data: bytes = b"") -> Tuple[bool, bytes]:
        """
        True when a draw may start: interval elapsed, round open, a non-zero
        pot and at least one player. Never cached; time and balance move
        between calls.
        """
        time_passed = (self.clock() - self.round.last_timestamp) >= self.config.interval_s
        is_open = self.round.state is RaffleState.OPEN
        has_balance = self.balance > 0
        has_players = len(self.round.players) > 0
        return (time_passed and is_open and has_balance and has_players), b""

    def perform_upkeep(self, perform_data: bytes = b"") -> int:
        with self._lock:
            upkeep_needed, _ = self.check_upkeep(b"")
            if not upkeep_needed:
                raise UpkeepNotNeeded(
                    self.balance, len(self.round.players), self.round.state
                )

            # Close entry before talking to the oracle so a second trigger fails.
            self.round.state = RaffleState.CALCULATING
            request = RandomWordsRequest.from_config(self.config)
            # The request id only exists once the oracle answers, so a coordinator
            # that fulfills inside this call emits WinnerPicked before
            # RequestedRaffleWinner.
            try:
                request_id = self.coordinator.request_random_words(request, self)
            except Exception:
                # Nothing is in flight; an aborted trigger leaves the round open.
                self.round.state = RaffleState.OPEN
                raise
            self.events.emit(RequestedRaffleWinner(request_id=request_id))
            return request_id

    # -- fulfillment -------------------------------------------------------

    def raw_fulfill_random_words(
        self, caller: str, request_id: int, random_words: Sequence[int]
    ) -> None:
        if caller != self.coordinator.address:
            raise OnlyCoordinatorCanFulfill(caller, self.coordinator.address)
        self._fulfill_random_words(request_id, random_words)

    def _fulfill_random_words(
        self, request_id: int, random_words: Sequence[int]
    ) -> None:
        with self._lock:
            players = self.round.players
            winner = players[winner_index(random_words, len(players))]

            self.round.recent_winner = winner
            self.round.state = RaffleState.OPEN
            self.round.players = []
            self.round.last_timestamp = self.clock()
            self.events.emit(WinnerPicked(winner=winner))

            pot = self.balance
            try:
                self.ledger.transfer(self.address, winner, pot)
            except TransferRejected as e:
                log.error(
                    "Payout failed for request_id=%d: %d stranded in %s "
                    "(round already reset, winner %s)",
                    request_id, pot, self.address, winner,
                )
                raise PayoutFailed(winner, pot) from e
            log.info("Paid %d to %s (request_id=%d)", pot, winner, request_id)

    # -- read accessors ----------------------------------------------------

    @property
    def balance(self) -> int:
        return self.ledger.balance_of(self.address)

    @property
    def entrance_fee(self) -> int:
        return self.config.entrance_fee

    @property
    def interval(self) -> float:
        return self.config.interval_s

    @property
    def num_words(self) -> int:
        return self.config.num_words

    @property
    def request_confirmations(self) -> int:
        return self.config.request_confirmations

    @property
    def raffle_state(self) -> RaffleState:
        return self.round.state

    @property
    def number_of_players(self) -> int:
        return len(self.round.players)

    @property
    def recent_winner(self) -> Optional[str]:
        return self.round.recent_winner

    @property
    def last_timestamp(self) -> float:
        return self.round.last_timestamp

    @property
    def coordinator_address(self) -> str:
        return self.coordinator.address

    def get_player(self, index: int) -> str:
        if index < 0:
            raise IndexError(f"Player index must be >= 0, got {index}")
        return self.round.players[index]
