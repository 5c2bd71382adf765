"""Deterministic record and account keys.

Keys are pure functions of stable identifiers. Each key is a namespace tag
followed by a SHA-256 digest over length-prefixed parts, so no two distinct
identifier tuples (within or across namespaces) share a key.
"""

from __future__ import annotations

import hashlib

CONFIG_NAMESPACE = "global"
MARKET_NAMESPACE = "market"
POSITION_NAMESPACE = "position"
ESCROW_NAMESPACE = "escrow"


def derive_key(namespace: str, *parts: str | int) -> str:
    h = hashlib.sha256(namespace.encode())
    for part in parts:
        raw = str(part).encode()
        h.update(len(raw).to_bytes(4, "big"))
        h.update(raw)
    return f"{namespace}:{h.hexdigest()}"


def config_key() -> str:
    return derive_key(CONFIG_NAMESPACE)


def market_key(market_id: int) -> str:
    return derive_key(MARKET_NAMESPACE, market_id)


def position_key(user: str, market_id: int) -> str:
    return derive_key(POSITION_NAMESPACE, user, market_id)


def escrow_account(market_id: int) -> str:
    """Value-holding account that custodies a market's stakes."""
    return derive_key(ESCROW_NAMESPACE, market_id)


def is_escrow_account(account: str) -> bool:
    return account.startswith(f"{ESCROW_NAMESPACE}:")
