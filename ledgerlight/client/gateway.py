from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

import bittensor as bt
import requests
from pydantic import ValidationError

from ledgerlight.consensus.schemas import (
    ClaimedState,
    Confirmation,
    MalformedStateError,
    RawState,
    parse_claimed_state,
)


class GatewayError(RuntimeError):
    """The API gateway could not be reached or returned an unusable body."""


@dataclass(frozen=True)
class GatewayResponse:
    state: ClaimedState
    confirmations: List[Confirmation] = field(default_factory=list)


def parse_envelope(data: Any) -> GatewayResponse:
    """
    Parse a gateway body: {"state": {...}, "confirmations": [{"validator", "signature"}]}.

    An unrecognised state is kept as a RawState so the verifier decides on it;
    unparseable confirmations are skipped.
    """
    if not isinstance(data, dict):
        raise GatewayError(f"gateway body must be a JSON object, got {type(data).__name__}")

    state_raw = data.get("state")
    state: ClaimedState
    if isinstance(state_raw, dict):
        try:
            state = parse_claimed_state(state_raw)
        except MalformedStateError:
            state = RawState(payload=state_raw)
    else:
        state = RawState(payload=state_raw)

    confirmations: List[Confirmation] = []
    items = data.get("confirmations")
    if isinstance(items, list):
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                confirmations.append(Confirmation.model_validate(item))
            except ValidationError:
                continue
    return GatewayResponse(state=state, confirmations=confirmations)


class GatewayClient:
    """Read-only HTTP client for the untrusted API gateway."""

    def __init__(self, base_url: str, *, timeout_s: float = 5.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = requests.get(url, timeout=self.timeout_s)
            r.raise_for_status()
            return r.json()
        # JSONDecodeError is itself a RequestException; catch it first.
        except requests.JSONDecodeError as exc:
            bt.logging.warning(f"Gateway returned non-JSON body: {url}: {exc}")
            raise GatewayError(f"gateway returned non-JSON body: {url}") from exc
        except requests.RequestException as exc:
            bt.logging.warning(f"Gateway request failed: {url}: {exc}")
            raise GatewayError(f"gateway request failed: {url}") from exc

    def fetch_wallet(self, public_key: str) -> GatewayResponse:
        return parse_envelope(self._get_json(f"/wallets/{public_key}"))

    def fetch_block(self, height: int) -> GatewayResponse:
        return parse_envelope(self._get_json(f"/blocks/{int(height)}"))

    def fetch_transaction(self, tx_hash: str) -> GatewayResponse:
        return parse_envelope(self._get_json(f"/transactions/{tx_hash}"))
