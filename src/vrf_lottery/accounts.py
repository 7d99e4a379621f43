from __future__ import annotations

import hashlib
from typing import List

import base58

from .errors import InvalidAddress

ADDRESS_LEN = 32


def encode_address(raw: bytes) -> str:
    if len(raw) != ADDRESS_LEN:
        raise InvalidAddress(raw)
    return base58.b58encode(raw).decode("ascii")


def derive_address(label: str) -> str:
    """Deterministic address for a label (test players, local coordinator)."""
    return encode_address(hashlib.sha256(label.encode("utf-8")).digest())


def is_valid_address(address: object) -> bool:
    if not isinstance(address, str) or not address:
        return False
    try:
        raw = base58.b58decode(address)
    except ValueError:
        return False
    return len(raw) == ADDRESS_LEN


def require_address(address: object) -> str:
    if not is_valid_address(address):
        raise InvalidAddress(address)
    return address  # type: ignore[return-value]


def load_addresses(path: str) -> List[str]:
    """
    One address per line; blank lines and '#' comments are skipped.
    Order is preserved (entry order matters for the draw).
    """
    out: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            w = line.strip()
            if not w or w.startswith("#"):
                continue
            out.append(require_address(w))
    return out
