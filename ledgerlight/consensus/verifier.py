"""Quorum verification of claimed ledger state.

`verify` is a pure decision: it reads only its arguments and the immutable
registry, performs no I/O and returns every outcome as data. A rejection is
an expected result (the network may simply be lagging), not an error.
"""

from __future__ import annotations

import hashlib
from typing import Dict, Iterable, List, Literal, Optional, Set, Tuple, Union

import bittensor as bt
from pydantic import BaseModel, ConfigDict, SerializeAsAny

from ledgerlight.consensus.registry import ValidatorRegistry, normalize_key
from ledgerlight.consensus.schemas import ClaimedState, Confirmation
from ledgerlight.consensus.signing import MalformedStateError, verify_message

DiscardReason = Literal["unknown-signer", "bad-signature", "duplicate"]
RejectionCode = Literal[
    "empty_confirmation_set",
    "malformed_state",
    "insufficient_quorum",
    "subject_mismatch",
]

MALFORMED_GROUP = "malformed"


class DiscardedConfirmation(BaseModel):
    model_config = ConfigDict(frozen=True)

    validator: str
    reason: DiscardReason


class RejectionReason(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: RejectionCode
    valid_count: int = 0
    required: int
    detail: str = ""


class Verified(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["verified"] = "verified"
    state: SerializeAsAny[ClaimedState]
    digest: str
    valid_count: int
    required: int
    # Counted validators, in registry order.
    signers: Tuple[str, ...]
    discarded: Tuple[DiscardedConfirmation, ...] = ()

    @property
    def verified(self) -> bool:
        return True


class Rejected(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["rejected"] = "rejected"
    reason: RejectionReason
    # None when the state could not be canonicalized.
    digest: Optional[str] = None
    discarded: Tuple[DiscardedConfirmation, ...] = ()

    @property
    def verified(self) -> bool:
        return False


VerificationResult = Union[Verified, Rejected]


def is_verified(result: VerificationResult) -> bool:
    return isinstance(result, Verified)


def _resolve(validator: str, registry: ValidatorRegistry) -> Optional[str]:
    try:
        key = normalize_key(validator)
    except ValueError:
        return None
    return key if registry.contains(key) else None


def verify(
    state: ClaimedState,
    confirmations: Iterable[Confirmation],
    registry: ValidatorRegistry,
) -> VerificationResult:
    """
    Decide whether `state` is attested by a quorum of registered validators.

    Confirmations from unknown signers, with bad signatures, or repeating an
    already counted validator are discarded and reported in `discarded`; they
    never abort evaluation of the remaining confirmations.
    """
    required = registry.quorum_threshold()
    confirmations = list(confirmations)
    if not confirmations:
        return Rejected(
            reason=RejectionReason(
                code="empty_confirmation_set",
                required=required,
                detail="no confirmations supplied",
            )
        )

    # Canonicalize before looking at any signature.
    try:
        message = state.canonical_bytes()
    except MalformedStateError as exc:
        bt.logging.debug(f"Rejecting malformed state: {exc}")
        return Rejected(
            reason=RejectionReason(code="malformed_state", required=required, detail=str(exc))
        )
    digest = hashlib.sha256(message).hexdigest()

    counted: Set[str] = set()
    discarded: List[DiscardedConfirmation] = []
    for conf in confirmations:
        key = _resolve(conf.validator, registry)
        if key is None:
            discarded.append(DiscardedConfirmation(validator=conf.validator, reason="unknown-signer"))
            continue
        if key in counted:
            discarded.append(DiscardedConfirmation(validator=conf.validator, reason="duplicate"))
            continue
        if not verify_message(message, public_key=key, signature_hex=conf.signature, scheme=registry.scheme):
            discarded.append(DiscardedConfirmation(validator=conf.validator, reason="bad-signature"))
            continue
        counted.add(key)

    for d in discarded:
        bt.logging.debug(f"Discarded confirmation from {d.validator[:16]} on {digest[:16]}: {d.reason}")

    valid_count = len(counted)
    if valid_count >= required:
        signers = tuple(sorted(counted, key=registry.index_of))
        bt.logging.debug(f"State {digest[:16]} verified ({valid_count}/{required})")
        return Verified(
            state=state,
            digest=digest,
            valid_count=valid_count,
            required=required,
            signers=signers,
            discarded=tuple(discarded),
        )

    bt.logging.debug(f"State {digest[:16]} below quorum ({valid_count}/{required})")
    return Rejected(
        reason=RejectionReason(
            code="insufficient_quorum",
            valid_count=valid_count,
            required=required,
            detail=f"quorum_not_met(valid={valid_count}, need={required})",
        ),
        digest=digest,
        discarded=tuple(discarded),
    )


def verify_claims(
    claims: Iterable[Tuple[ClaimedState, Confirmation]],
    registry: ValidatorRegistry,
) -> Dict[str, VerificationResult]:
    """
    Verify confirmations collected from several responses.

    Claims are grouped by the digest of their canonical bytes, so two states
    are only tallied together when validators would have signed the very same
    payload. States that cannot be canonicalized are reported under "malformed".
    """
    groups: Dict[str, Tuple[ClaimedState, List[Confirmation]]] = {}
    for state, conf in claims:
        try:
            key = state.digest()
        except MalformedStateError:
            key = MALFORMED_GROUP
        if key not in groups:
            groups[key] = (state, [])
        groups[key][1].append(conf)

    return {key: verify(state, confs, registry) for key, (state, confs) in groups.items()}
