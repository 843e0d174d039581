from __future__ import annotations

from typing import Any, List, Tuple

import pytest
import requests

import ledgerlight.client.gateway as mod
from ledgerlight.client.gateway import GatewayClient, GatewayError, parse_envelope
from ledgerlight.client.light_client import LightClient
from ledgerlight.consensus.schemas import BlockHeader, RawState, TransactionInclusion, WalletSnapshot
from ledgerlight.consensus.verifier import Rejected, Verified


class _Resp:
    def __init__(self, body: Any = None, *, status: int = 200, bad_json: bool = False) -> None:
        self.body = body
        self.status = status
        self.bad_json = bad_json

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self) -> Any:
        if self.bad_json:
            raise requests.JSONDecodeError("Expecting value", "<html>", 0)
        return self.body


def _install(monkeypatch, resp: _Resp) -> List[Tuple[str, float]]:
    calls: List[Tuple[str, float]] = []

    def fake_get(url: str, *, timeout: float):
        calls.append((url, timeout))
        return resp

    monkeypatch.setattr(mod.requests, "get", fake_get)
    return calls


def _envelope(state, confirmations) -> dict:
    return {
        "state": state.payload if isinstance(state, RawState) else state.model_dump(),
        "confirmations": [c.model_dump() for c in confirmations],
    }


def test_fetch_wallet_parses_typed_state(monkeypatch, wallet_state, validator_keypairs, confirm):
    confs = [confirm(kp, wallet_state) for kp in validator_keypairs[:3]]
    calls = _install(monkeypatch, _Resp(_envelope(wallet_state, confs)))

    client = GatewayClient("http://gateway/api/", timeout_s=2.0)
    resp = client.fetch_wallet(wallet_state.public_key)

    assert calls == [(f"http://gateway/api/wallets/{wallet_state.public_key}", 2.0)]
    assert isinstance(resp.state, WalletSnapshot)
    assert resp.state == wallet_state
    assert resp.confirmations == confs


def test_fetch_block_and_transaction_urls(monkeypatch):
    calls = _install(monkeypatch, _Resp({"state": {}, "confirmations": []}))
    client = GatewayClient("http://gateway")
    client.fetch_block(12)
    client.fetch_transaction("ab" * 32)
    assert [url for url, _ in calls] == [
        "http://gateway/blocks/12",
        f"http://gateway/transactions/{'ab' * 32}",
    ]


def test_http_error_raises_gateway_error(monkeypatch):
    _install(monkeypatch, _Resp(status=503))
    with pytest.raises(GatewayError):
        GatewayClient("http://gateway").fetch_block(1)


def test_non_json_body_raises_gateway_error(monkeypatch):
    _install(monkeypatch, _Resp(bad_json=True))
    with pytest.raises(GatewayError, match="non-JSON"):
        GatewayClient("http://gateway").fetch_block(1)


def test_connection_error_raises_gateway_error(monkeypatch):
    def fake_get(url: str, *, timeout: float):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(mod.requests, "get", fake_get)
    with pytest.raises(GatewayError):
        GatewayClient("http://gateway").fetch_wallet("aa" * 32)


def test_parse_envelope_rejects_non_object_body():
    with pytest.raises(GatewayError):
        parse_envelope(["not", "an", "object"])


def test_parse_envelope_keeps_unrecognised_state_raw(wallet_state):
    extended = {**wallet_state.model_dump(), "memo": "hi"}
    resp = parse_envelope({"state": extended})
    assert isinstance(resp.state, RawState)
    assert resp.state.payload == extended
    assert resp.confirmations == []

    # Strict typing: a float balance is not silently coerced to int.
    coerced = {**wallet_state.model_dump(), "balance": 100.0}
    assert isinstance(parse_envelope({"state": coerced}).state, RawState)

    assert isinstance(parse_envelope({"state": "oops"}).state, RawState)


def test_parse_envelope_block_state():
    block = {
        "kind": "block",
        "height": 3,
        "prev_hash": "00" * 32,
        "tx_hash": "11" * 32,
        "state_hash": "22" * 32,
        "proposer_id": 1,
        "tx_count": 0,
    }
    assert isinstance(parse_envelope({"state": block}).state, BlockHeader)


def test_parse_envelope_skips_bad_confirmations(wallet_state):
    body = {
        "state": wallet_state.model_dump(),
        "confirmations": [
            "junk",
            {"validator": "aa" * 32},
            {"validator": 5, "signature": "00"},
            {"validator": "bb" * 32, "signature": "cc", "extra": True},
        ],
    }
    resp = parse_envelope(body)
    assert [c.validator for c in resp.confirmations] == ["bb" * 32]


def test_light_client_fetches_then_verifies(monkeypatch, wallet_state, registry, validator_keypairs, confirm):
    client = LightClient(GatewayClient("http://gateway"), registry)

    _install(monkeypatch, _Resp(_envelope(wallet_state, [confirm(kp, wallet_state) for kp in validator_keypairs[:3]])))
    assert isinstance(client.wallet(wallet_state.public_key), Verified)

    _install(monkeypatch, _Resp(_envelope(wallet_state, [confirm(validator_keypairs[0], wallet_state)])))
    result = client.wallet(wallet_state.public_key)
    assert isinstance(result, Rejected)
    assert result.reason.code == "insufficient_quorum"

    _install(monkeypatch, _Resp({"state": {"balance": 1}, "confirmations": []}))
    assert client.block(1).reason.code == "empty_confirmation_set"


def _fully_signed(state, validator_keypairs, confirm) -> _Resp:
    return _Resp(_envelope(state, [confirm(kp, state) for kp in validator_keypairs]))


def test_light_client_rejects_another_wallet(monkeypatch, wallet_state, registry, validator_keypairs, confirm):
    client = LightClient(GatewayClient("http://gateway"), registry)
    _install(monkeypatch, _fully_signed(wallet_state, validator_keypairs, confirm))

    result = client.wallet("cc" * 32)
    assert isinstance(result, Rejected)
    assert result.reason.code == "subject_mismatch"
    assert result.reason.valid_count == 4
    assert result.digest == wallet_state.digest()

    # Same key, different spelling.
    assert isinstance(client.wallet("0x" + wallet_state.public_key.upper()), Verified)


def test_light_client_rejects_wrong_kind(monkeypatch, wallet_state, registry, validator_keypairs, confirm):
    client = LightClient(GatewayClient("http://gateway"), registry)
    _install(monkeypatch, _fully_signed(wallet_state, validator_keypairs, confirm))
    assert client.block(7).reason.code == "subject_mismatch"
    assert client.transaction("11" * 32).reason.code == "subject_mismatch"

    raw = RawState(payload={"kind": "block", "height": 7, "memo": "not a header"})
    _install(monkeypatch, _fully_signed(raw, validator_keypairs, confirm))
    assert client.block(7).reason.code == "subject_mismatch"


def test_light_client_block_height_must_match(monkeypatch, registry, validator_keypairs, confirm):
    block = BlockHeader(
        kind="block",
        height=7,
        prev_hash="00" * 32,
        tx_hash="11" * 32,
        state_hash="22" * 32,
        proposer_id=0,
        tx_count=1,
    )
    client = LightClient(GatewayClient("http://gateway"), registry)
    _install(monkeypatch, _fully_signed(block, validator_keypairs, confirm))

    assert isinstance(client.block(7), Verified)
    assert client.block(8).reason.code == "subject_mismatch"


def test_light_client_transaction_hash_must_match(monkeypatch, registry, validator_keypairs, confirm):
    tx = TransactionInclusion(kind="transaction", tx_hash="ab" * 32, block_height=7, position=0, status="success")
    client = LightClient(GatewayClient("http://gateway"), registry)
    _install(monkeypatch, _fully_signed(tx, validator_keypairs, confirm))

    assert isinstance(client.transaction("AB" * 32), Verified)
    assert client.transaction("cd" * 32).reason.code == "subject_mismatch"
