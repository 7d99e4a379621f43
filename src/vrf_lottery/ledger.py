from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Set

from .accounts import require_address
from .errors import InsufficientFunds, TransferRejected

log = logging.getLogger(__name__)


class Ledger:
    """Native-currency balances for every address the lottery touches."""

    def __init__(self) -> None:
        self._balances: Dict[str, int] = defaultdict(int)
        self._rejecting: Set[str] = set()

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def fund(self, address: str, amount: int) -> None:
        require_address(address)
        if amount < 0:
            raise ValueError(f"Cannot fund a negative amount: {amount}")
        self._balances[address] += amount

    def reject_payments(self, address: str, reject: bool = True) -> None:
        """Mark an address as refusing incoming transfers (e.g. a contract without a receive hook)."""
        require_address(address)
        if reject:
            self._rejecting.add(address)
        else:
            self._rejecting.discard(address)

    def transfer(self, src: str, dst: str, amount: int) -> None:
        require_address(src)
        require_address(dst)
        if amount < 0:
            raise ValueError(f"Cannot transfer a negative amount: {amount}")

        available = self.balance_of(src)
        if available < amount:
            raise InsufficientFunds(src, amount, available)
        if dst in self._rejecting:
            raise TransferRejected(dst, amount)

        self._balances[src] -= amount
        self._balances[dst] += amount
        log.debug("Transfer %d: %s -> %s", amount, src, dst)
