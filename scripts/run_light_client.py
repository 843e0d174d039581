from __future__ import annotations

import sys
from pathlib import Path

# Allow running as a script without requiring `PYTHONPATH=.`.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import bittensor as bt
import uvicorn

from ledgerlight.client.app import create_app
from ledgerlight.client.config import load_client_env
from ledgerlight.client.gateway import GatewayClient
from ledgerlight.client.light_client import LightClient


def main() -> int:
    cfg = load_client_env()
    registry = cfg.registry
    bt.logging.info(
        f"Loaded {registry.size()} validators ({registry.scheme}); "
        f"quorum={registry.quorum_threshold()}, tolerates f={registry.max_faulty()}"
    )

    gateway = GatewayClient(cfg.gateway.base_url, timeout_s=cfg.gateway.timeout_s)
    app = create_app(LightClient(gateway, registry))

    bt.logging.info(f"Serving read API on http://{cfg.api.host}:{cfg.api.port} (gateway={cfg.gateway.base_url})")
    uvicorn.run(app, host=cfg.api.host, port=cfg.api.port, log_level="warning")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
