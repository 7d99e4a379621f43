"""
Randomness oracle integration.

A coordinator accepts requests for random words and later delivers exactly
one fulfillment per request to the consumer that asked for it. The table of
outstanding requests lives here, so stale or forged request ids are rejected
before the engine ever sees them.
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from .accounts import derive_address, require_address
from .config import DrawConfig
from .errors import InvalidRandomWords, OracleError, UnknownRequest
from .project_constants import LOCAL_COORDINATOR_LABEL
from .rpc import RpcClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RandomWordsRequest:
    key_hash: str
    subscription_id: int
    request_confirmations: int
    callback_gas_limit: int
    num_words: int
    native_payment: bool = False

    @staticmethod
    def from_config(cfg: DrawConfig) -> "RandomWordsRequest":
        return RandomWordsRequest(
            key_hash=cfg.key_hash,
            subscription_id=cfg.subscription_id,
            request_confirmations=cfg.request_confirmations,
            callback_gas_limit=cfg.callback_gas_limit,
            num_words=cfg.num_words,
            native_payment=cfg.native_payment,
        )


class RandomnessConsumer(Protocol):
    def raw_fulfill_random_words(
        self, caller: str, request_id: int, random_words: Sequence[int]
    ) -> None: ...


@dataclass(frozen=True)
class _Pending:
    request: RandomWordsRequest
    consumer: RandomnessConsumer


class Coordinator:
    """Bookkeeping shared by every oracle backend."""

    def __init__(self, address: str) -> None:
        self.address = require_address(address)
        self._pending: Dict[int, _Pending] = {}
        self.last_fulfillment: Optional[Tuple[int, List[int]]] = None

    def pending_requests(self) -> List[int]:
        return sorted(self._pending)

    def is_pending(self, request_id: int) -> bool:
        return request_id in self._pending

    def request_random_words(
        self, request: RandomWordsRequest, consumer: RandomnessConsumer
    ) -> int:
        request_id = self._submit(request)
        if request_id in self._pending:
            raise OracleError(f"Oracle reused outstanding request id {request_id}")
        self._pending[request_id] = _Pending(request, consumer)
        log.info(
            "Requested %d random word(s): request_id=%d confirmations=%d gas=%d",
            request.num_words,
            request_id,
            request.request_confirmations,
            request.callback_gas_limit,
        )
        return request_id

    def _submit(self, request: RandomWordsRequest) -> int:
        raise NotImplementedError

    def _deliver(self, request_id: int, random_words: Sequence[int]) -> None:
        entry = self._pending.get(request_id)
        if entry is None:
            raise UnknownRequest(request_id)
        if len(random_words) != entry.request.num_words:
            raise InvalidRandomWords(
                request_id, entry.request.num_words, len(random_words)
            )

        # Consumed before the callback runs: one delivery per request even if
        # the consumer fails.
        del self._pending[request_id]
        self.last_fulfillment = (request_id, list(random_words))
        log.info("Fulfilling request_id=%d", request_id)
        entry.consumer.raw_fulfill_random_words(
            self.address, request_id, list(random_words)
        )


def derive_random_words(request_id: int, num_words: int) -> List[int]:
    out: List[int] = []
    for i in range(num_words):
        digest = hashlib.sha256(f"{request_id}:{i}".encode("utf-8")).hexdigest()
        out.append(int(digest, 16))
    return out


class LocalCoordinator(Coordinator):
    """In-process oracle; the caller decides when a request is fulfilled."""

    def __init__(self, address: Optional[str] = None) -> None:
        super().__init__(address or derive_address(LOCAL_COORDINATOR_LABEL))
        self._next_id = 1
        self.last_request_id: Optional[int] = None

    def _submit(self, request: RandomWordsRequest) -> int:
        request_id = self._next_id
        self._next_id += 1
        self.last_request_id = request_id
        return request_id

    def fulfill_random_words(
        self, request_id: int, random_words: Optional[Sequence[int]] = None
    ) -> List[int]:
        entry = self._pending.get(request_id)
        if entry is None:
            raise UnknownRequest(request_id)
        if random_words is None:
            random_words = derive_random_words(request_id, entry.request.num_words)
        words = list(random_words)
        self._deliver(request_id, words)
        return words


class RpcCoordinator(Coordinator):
    """Oracle reached over JSON-RPC; fulfillments are picked up by poll()."""

    def __init__(self, client: RpcClient, address: str) -> None:
        super().__init__(address)
        self.client = client

    def close(self) -> None:
        self.client.close()

    def _submit(self, request: RandomWordsRequest) -> int:
        return self.client.request_random_words(
            key_hash=request.key_hash,
            subscription_id=request.subscription_id,
            request_confirmations=request.request_confirmations,
            callback_gas_limit=request.callback_gas_limit,
            num_words=request.num_words,
            native_payment=request.native_payment,
        )

    def poll(self) -> int:
        """Delivers every ready fulfillment; returns how many were delivered."""
        delivered = 0
        for request_id in self.pending_requests():
            words = self.client.get_random_words(request_id)
            if words is None:
                log.debug("request_id=%d still pending", request_id)
                continue
            self._deliver(request_id, words)
            delivered += 1
        return delivered
