from __future__ import annotations

import json
from typing import Any, Dict

from .draw import winner_index
from .errors import AuditMismatch


def verify_audit(audit_path: str) -> Dict[str, Any]:
    with open(audit_path, "r", encoding="utf-8") as f:
        audit = json.load(f)

    try:
        meta = audit["metadata"]
        random_words = [int(w) for w in meta["random_words"]]
        index_expected = int(meta["winner_index"])
        entrants = list(audit["all_entrants"])
        winner_expected = audit["winner"]["address"]
    except (KeyError, TypeError, ValueError) as e:
        raise AuditMismatch(f"Malformed audit {audit_path}: {e!r}") from e

    if not entrants:
        raise AuditMismatch("Audit lists no entrants.")
    if not random_words:
        raise AuditMismatch("Audit lists no random words.")

    index = winner_index(random_words, len(entrants))
    if index != index_expected:
        raise AuditMismatch(
            f"Winner index mismatch: audit={index_expected} recomputed={index}"
        )

    winner = entrants[index]
    if winner != winner_expected:
        raise AuditMismatch(
            f"Winner mismatch: audit={winner_expected} recomputed={winner}"
        )

    return {
        "ok": True,
        "request_id": meta.get("request_id"),
        "random_word": random_words[0],
        "winner": winner,
        "winner_index": index,
        "total_entrants": len(entrants),
    }
