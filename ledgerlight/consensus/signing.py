from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict

import bittensor as bt


# bittensor `crypto_type` values.
KEY_SCHEMES: Dict[str, int] = {"ed25519": 0, "sr25519": 1}
DEFAULT_SCHEME = "sr25519"


class MalformedStateError(ValueError):
    """A claimed state has no canonical byte representation."""


def canon_json(obj: Any) -> bytes:
    # Stable canonical encoding for signing/verifying. Only finite floats are encodable.
    try:
        text = json.dumps(
            obj,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=True,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise MalformedStateError(f"cannot canonicalize: {exc}") from exc
    return text.encode("utf-8")


@lru_cache(maxsize=256)
def _public_keypair(public_key: str, scheme: str) -> bt.Keypair:
    return bt.Keypair(public_key=f"0x{public_key}", crypto_type=KEY_SCHEMES[scheme])


def sign_message(message: bytes, *, keypair: bt.Keypair) -> str:
    sig = keypair.sign(message)
    return sig.hex()


def verify_message(
    message: bytes,
    *,
    public_key: str,
    signature_hex: str,
    scheme: str = DEFAULT_SCHEME,
) -> bool:
    """Check `signature_hex` over `message` under a hex public key. Never raises."""
    try:
        raw = signature_hex[2:] if signature_hex.lower().startswith("0x") else signature_hex
        sig = bytes.fromhex(raw)
    except Exception:
        return False
    if not sig:
        return False
    try:
        kp = _public_keypair(public_key, scheme)
        return bool(kp.verify(message, sig))
    except Exception:
        return False
