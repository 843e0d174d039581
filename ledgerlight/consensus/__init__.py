"""Verification core of the light client.

A response from the API gateway is only trusted once a Byzantine quorum of
known validators has signed its canonical byte representation:

- `registry`: the immutable validator set and its quorum threshold
- `signing`: canonical JSON encoding and keypair signature checks
- `schemas`: claimed states (wallet, block, transaction) and confirmations
- `verifier`: the pure quorum decision producing Verified/Rejected

Nothing in this package performs I/O.
"""

from __future__ import annotations

from ledgerlight.consensus.registry import ConfigError, ValidatorRegistry, bft_quorum
from ledgerlight.consensus.schemas import (
    BlockHeader,
    ClaimedState,
    Confirmation,
    MalformedStateError,
    RawState,
    TransactionInclusion,
    WalletSnapshot,
    parse_claimed_state,
)
from ledgerlight.consensus.verifier import (
    Rejected,
    VerificationResult,
    Verified,
    is_verified,
    verify,
    verify_claims,
)

__all__ = [
    "BlockHeader",
    "ClaimedState",
    "ConfigError",
    "Confirmation",
    "MalformedStateError",
    "RawState",
    "Rejected",
    "TransactionInclusion",
    "ValidatorRegistry",
    "VerificationResult",
    "Verified",
    "WalletSnapshot",
    "bft_quorum",
    "is_verified",
    "parse_claimed_state",
    "verify",
    "verify_claims",
]
