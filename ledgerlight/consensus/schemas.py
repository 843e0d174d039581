from __future__ import annotations

import hashlib
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ledgerlight.consensus.signing import MalformedStateError, canon_json


class ClaimedState(BaseModel):
    """
    Ledger state returned by the gateway, pending validator confirmation.

    Typed claims are strict and carry no defaults so that the dumped model is
    byte-for-byte the payload validators signed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    def canonical_bytes(self) -> bytes:
        return canon_json(self.model_dump())

    def digest(self) -> str:
        return hashlib.sha256(self.canonical_bytes()).hexdigest()


class WalletSnapshot(ClaimedState):
    kind: Literal["wallet"]

    public_key: str
    name: str
    balance: int
    history_len: int
    history_hash: str


class BlockHeader(ClaimedState):
    kind: Literal["block"]

    height: int
    prev_hash: str
    tx_hash: str
    state_hash: str
    proposer_id: int
    tx_count: int


class TransactionInclusion(ClaimedState):
    kind: Literal["transaction"]

    tx_hash: str
    block_height: int
    position: int
    status: Literal["success", "error", "panic"]


class RawState(ClaimedState):
    """A claim the typed models do not recognise; its payload is signed as-is."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=False)

    payload: Any = None

    def canonical_bytes(self) -> bytes:
        if not isinstance(self.payload, dict):
            raise MalformedStateError(
                f"claimed state must be a JSON object, got {type(self.payload).__name__}"
            )
        return canon_json(self.payload)


TypedState = Annotated[
    Union[WalletSnapshot, BlockHeader, TransactionInclusion],
    Field(discriminator="kind"),
]
_typed_state = TypeAdapter(TypedState)


def parse_claimed_state(payload: Mapping[str, Any]) -> ClaimedState:
    """Build the typed claim for `payload` using its `kind` discriminator."""
    try:
        return _typed_state.validate_python(dict(payload))
    except (TypeError, ValueError, ValidationError) as exc:
        raise MalformedStateError(f"unrecognised claimed state: {exc}") from exc


class Confirmation(BaseModel):
    """One validator's signature over a claimed state's canonical bytes."""

    model_config = ConfigDict(frozen=True)

    # Hex public key as submitted; resolution against the registry happens at verify time.
    validator: str
    signature: str
