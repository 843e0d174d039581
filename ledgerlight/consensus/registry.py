from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Sequence, Tuple

from ledgerlight.consensus.signing import DEFAULT_SCHEME, KEY_SCHEMES

KEY_BYTES = 32


class ConfigError(ValueError):
    """The validator registry cannot be built from the supplied keys."""


def normalize_key(raw: str) -> str:
    """
    Normalize a hex-encoded 32-byte public key.

    Accepts an optional `0x` prefix and any letter case; returns lowercase hex.
    """
    if not isinstance(raw, str):
        raise ValueError(f"expected a hex string, got {type(raw).__name__}")
    key = raw.strip().lower()
    if key.startswith("0x"):
        key = key[2:]
    if len(key) != KEY_BYTES * 2:
        raise ValueError(f"expected {KEY_BYTES * 2} hex chars, got {len(key)}")
    bytes.fromhex(key)
    return key


def bft_quorum(total_validators: int) -> int:
    """
    Byzantine quorum for a fixed validator set: floor(2n/3)+1.

    Examples:
    - total=1 -> quorum=1
    - total=4 -> quorum=3 (tolerates f=1)
    - total=7 -> quorum=5 (tolerates f=2)
    """
    n = int(total_validators)
    if n <= 0:
        raise ValueError("quorum is undefined for an empty validator set")
    return (2 * n) // 3 + 1


@dataclass(frozen=True)
class ValidatorRegistry:
    """
    Ordered, immutable set of validator public keys.

    Built once at startup and shared read-only by every verification call.
    There is no way to add or remove keys afterwards.
    """

    keys: Tuple[str, ...]
    scheme: str = DEFAULT_SCHEME
    _index: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.scheme not in KEY_SCHEMES:
            raise ConfigError(f"unknown key scheme {self.scheme!r} (expected one of {sorted(KEY_SCHEMES)})")
        if isinstance(self.keys, (str, bytes)):
            raise ConfigError("expected a sequence of validator keys, got a single value")

        normalized = []
        index: Dict[str, int] = {}
        for position, raw in enumerate(self.keys):
            try:
                key = normalize_key(raw)
            except ValueError as exc:
                raise ConfigError(f"validator key #{position} is invalid: {exc}") from exc
            if key in index:
                raise ConfigError(f"duplicate validator key #{position}: {key}")
            index[key] = position
            normalized.append(key)

        if not normalized:
            raise ConfigError("validator registry cannot be empty")

        object.__setattr__(self, "keys", tuple(normalized))
        object.__setattr__(self, "_index", index)

    @classmethod
    def load(cls, keys: Sequence[str], *, scheme: str = DEFAULT_SCHEME) -> "ValidatorRegistry":
        if isinstance(keys, (str, bytes)):
            raise ConfigError("expected a sequence of validator keys, got a single value")
        return cls(keys=tuple(keys), scheme=scheme)

    def size(self) -> int:
        return len(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys)

    def contains(self, key: str) -> bool:
        try:
            return normalize_key(key) in self._index
        except ValueError:
            return False

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def index_of(self, key: str) -> int:
        return self._index[normalize_key(key)]

    def quorum_threshold(self) -> int:
        return bft_quorum(len(self.keys))

    def max_faulty(self) -> int:
        # Validators that may be faulty or silent while a quorum is still reachable.
        return len(self.keys) - self.quorum_threshold()
