import sys
from pathlib import Path

# Ensure repo root is on sys.path so `import ledgerlight` works under all pytest import modes.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import bittensor as bt  # noqa: E402
import pytest  # noqa: E402

from ledgerlight.consensus.registry import ValidatorRegistry  # noqa: E402
from ledgerlight.consensus.schemas import Confirmation, WalletSnapshot  # noqa: E402
from ledgerlight.consensus.signing import sign_message  # noqa: E402


@pytest.fixture(scope="session")
def validator_keypairs():
    return [bt.Keypair.create_from_seed(f"{i:02x}" * 32) for i in range(1, 5)]


@pytest.fixture(scope="session")
def outsider_keypair():
    return bt.Keypair.create_from_seed("ee" * 32)


@pytest.fixture(scope="session")
def registry(validator_keypairs):
    return ValidatorRegistry.load([kp.public_key.hex() for kp in validator_keypairs])


@pytest.fixture
def wallet_state():
    return WalletSnapshot(
        kind="wallet",
        public_key="aa" * 32,
        name="alice",
        balance=100,
        history_len=2,
        history_hash="bb" * 32,
    )


@pytest.fixture
def confirm():
    """Build a confirmation of `state` signed by `keypair`."""

    def _confirm(keypair, state) -> Confirmation:
        return Confirmation(
            validator=keypair.public_key.hex(),
            signature=sign_message(state.canonical_bytes(), keypair=keypair),
        )

    return _confirm
