"""Route dispatch and page titles for the wallet/explorer UI shell.

Routes are a closed set of tagged variants; every variant knows its own title.
Title changes are published through an explicit `TitleChannel` handed to
whoever needs it, rather than through shared global state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Protocol, Union, runtime_checkable


class RouteNotFound(LookupError):
    """No route matches the requested path."""


@runtime_checkable
class Titled(Protocol):
    def title(self) -> str: ...


@dataclass(frozen=True)
class Welcome:
    def title(self) -> str:
        return "Welcome"


@dataclass(frozen=True)
class Register:
    def title(self) -> str:
        return "Register"


@dataclass(frozen=True)
class UserWallet:
    def title(self) -> str:
        return "Wallet"


@dataclass(frozen=True)
class UserTransfer:
    def title(self) -> str:
        return "Transfer funds"


@dataclass(frozen=True)
class UserAddFunds:
    def title(self) -> str:
        return "Add funds"


@dataclass(frozen=True)
class BlockchainList:
    def title(self) -> str:
        return "Blockchain explorer"


@dataclass(frozen=True)
class BlockDetail:
    height: int

    def title(self) -> str:
        return f"Block {self.height}"


@dataclass(frozen=True)
class TransactionDetail:
    tx_hash: str

    def title(self) -> str:
        return "Transaction"


Route = Union[
    Welcome,
    Register,
    UserWallet,
    UserTransfer,
    UserAddFunds,
    BlockchainList,
    BlockDetail,
    TransactionDetail,
]

_STATIC_ROUTES = {
    "/": Welcome(),
    "/register": Register(),
    "/user": UserWallet(),
    "/user/transfer": UserTransfer(),
    "/user/add-funds": UserAddFunds(),
    "/blockchain": BlockchainList(),
}
_BLOCK_RE = re.compile(r"^/blockchain/block/(\d+)$")
_TX_RE = re.compile(r"^/blockchain/transaction/([0-9a-fA-F]+)$")


def dispatch(path: str) -> Route:
    normalized = "/" + path.strip().strip("/")
    route = _STATIC_ROUTES.get(normalized)
    if route is not None:
        return route

    m = _BLOCK_RE.match(normalized)
    if m:
        return BlockDetail(height=int(m.group(1)))
    m = _TX_RE.match(normalized)
    if m:
        return TransactionDetail(tx_hash=m.group(1).lower())
    raise RouteNotFound(path)


class TitleChannel:
    """Publish/subscribe channel for the current page title."""

    def __init__(self, initial: str = "") -> None:
        self.current = initial
        self._subscribers: List[Callable[[str], None]] = []

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, title: str) -> None:
        self.current = title
        for callback in list(self._subscribers):
            callback(title)


def mount(route: Titled, channel: TitleChannel) -> Titled:
    channel.publish(route.title())
    return route
