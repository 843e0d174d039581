from __future__ import annotations

from typing import Callable

from ledgerlight.client.gateway import GatewayClient, GatewayResponse
from ledgerlight.consensus.registry import ValidatorRegistry, normalize_key
from ledgerlight.consensus.schemas import BlockHeader, ClaimedState, TransactionInclusion, WalletSnapshot
from ledgerlight.consensus.verifier import Rejected, RejectionReason, VerificationResult, Verified, verify


def _same_key(a: str, b: str) -> bool:
    try:
        return normalize_key(a) == normalize_key(b)
    except ValueError:
        return False


def _same_hash(a: str, b: str) -> bool:
    def strip(h: str) -> str:
        h = h.strip().lower()
        return h[2:] if h.startswith("0x") else h

    return strip(a) == strip(b)


class LightClient:
    """
    Fetches claimed state from the gateway and decides whether to trust it.

    A quorum-signed state only answers a request if it is the subject that was
    asked for; the gateway could otherwise replay any genuinely signed claim.
    """

    def __init__(self, gateway: GatewayClient, registry: ValidatorRegistry) -> None:
        self.gateway = gateway
        self.registry = registry

    def _verify(
        self,
        response: GatewayResponse,
        *,
        subject: str,
        matches: Callable[[ClaimedState], bool],
    ) -> VerificationResult:
        result = verify(response.state, response.confirmations, self.registry)
        if not isinstance(result, Verified) or matches(result.state):
            return result
        return Rejected(
            reason=RejectionReason(
                code="subject_mismatch",
                valid_count=result.valid_count,
                required=result.required,
                detail=f"verified state is not {subject}",
            ),
            digest=result.digest,
            discarded=result.discarded,
        )

    def wallet(self, public_key: str) -> VerificationResult:
        return self._verify(
            self.gateway.fetch_wallet(public_key),
            subject=f"wallet {public_key}",
            matches=lambda s: isinstance(s, WalletSnapshot) and _same_key(s.public_key, public_key),
        )

    def block(self, height: int) -> VerificationResult:
        return self._verify(
            self.gateway.fetch_block(height),
            subject=f"block {height}",
            matches=lambda s: isinstance(s, BlockHeader) and s.height == int(height),
        )

    def transaction(self, tx_hash: str) -> VerificationResult:
        return self._verify(
            self.gateway.fetch_transaction(tx_hash),
            subject=f"transaction {tx_hash}",
            matches=lambda s: isinstance(s, TransactionInclusion) and _same_hash(s.tx_hash, tx_hash),
        )
