from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ledgerlight import __version__
from ledgerlight.client.gateway import GatewayError
from ledgerlight.client.light_client import LightClient
from ledgerlight.consensus.schemas import RawState
from ledgerlight.consensus.verifier import VerificationResult, Verified


def render_result(result: VerificationResult) -> Dict[str, Any]:
    """Shape a verification result for clients. State data is only included once verified."""
    if isinstance(result, Verified):
        state = result.state
        return {
            "status": "verified",
            "digest": result.digest,
            "valid_count": result.valid_count,
            "required": result.required,
            # Raw claims render as the object validators signed, like typed ones.
            "state": state.payload if isinstance(state, RawState) else state.model_dump(),
        }
    return {
        "status": "pending",
        "reason": result.reason.code,
        "valid_count": result.reason.valid_count,
        "required": result.reason.required,
        "detail": result.reason.detail,
    }


def _checked(fetch: Callable[[], VerificationResult]) -> Dict[str, Any]:
    try:
        return render_result(fetch())
    except GatewayError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


def create_app(light_client: LightClient, *, cors_origins: Optional[List[str]] = None) -> FastAPI:
    app = FastAPI(title="ledgerlight Read API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    registry = light_client.registry

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "validators": registry.size(), "quorum": registry.quorum_threshold()}

    @app.get("/wallets/{public_key}")
    def wallet(public_key: str):
        return _checked(lambda: light_client.wallet(public_key))

    @app.get("/blocks/{height}")
    def block(height: int):
        return _checked(lambda: light_client.block(height))

    @app.get("/transactions/{tx_hash}")
    def transaction(tx_hash: str):
        return _checked(lambda: light_client.transaction(tx_hash))

    return app
