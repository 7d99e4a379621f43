from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from .config import DrawConfig
from .project_constants import NATIVE_DECIMALS


def to_native(raw_amount: int) -> float:
    return round(raw_amount / (10**NATIVE_DECIMALS), 6)


def winner_index(random_words: Sequence[int], num_players: int) -> int:
    # num_players == 0 raises ZeroDivisionError; a draw never starts without players.
    return random_words[0] % num_players


def build_audit(
    *,
    request_id: int,
    random_words: Sequence[int],
    players: List[str],
    winner: str,
    pot: int,
    config: DrawConfig,
    coordinator: str,
) -> Dict[str, Any]:
    index = winner_index(random_words, len(players))
    return {
        "metadata": {
            "tool": "vrf-lottery",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "coordinator": coordinator,
            "request_id": str(request_id),
            # uint256; store as string for safety
            "random_words": [str(w) for w in random_words],
            "winner_index": index,
            "pot": pot,
            "config": asdict(config),
        },
        "winner": {"address": winner},
        # Entry order decides the winner, so keep it exactly.
        "all_entrants": list(players),
    }
