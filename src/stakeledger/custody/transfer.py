from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Protocol, Set

from ..errors import InsufficientBalance, TransferRejected


logger = logging.getLogger(__name__)


class AssetTransfer(Protocol):
    """Moves asset units in and out of ledger custody.

    Implementations must deliver exactly ``amount`` or raise a
    ``TransferFailed`` subclass; the ledger never tracks holder balances itself.
    """

    def transfer_in(self, source: str, amount: int) -> None: ...

    def transfer_out(self, destination: str, amount: int) -> None: ...


class InMemoryCustody:
    """Single-asset balance book holding a custody account for the ledger."""

    def __init__(
        self,
        balances: Optional[Dict[str, int]] = None,
        custody_account: str = "ledger",
        rejecting: Optional[Iterable[str]] = None,
    ):
        self.custody_account = custody_account
        self.balances: Dict[str, int] = {str(k): int(v) for k, v in (balances or {}).items()}
        self.rejecting: Set[str] = set(rejecting or ())

    def balance_of(self, holder: str) -> int:
        return self.balances.get(holder, 0)

    def mint(self, holder: str, amount: int) -> None:
        self.balances[holder] = self.balance_of(holder) + int(amount)

    def _move(self, source: str, destination: str, amount: int) -> None:
        if destination in self.rejecting:
            raise TransferRejected(f"destination {destination} rejected {amount} units")
        have = self.balance_of(source)
        if have < amount:
            raise InsufficientBalance(f"{source} holds {have}, needs {amount}")
        self.balances[source] = have - amount
        self.balances[destination] = self.balance_of(destination) + amount
        logger.debug(f"transfer {amount} {source} -> {destination}")

    def transfer_in(self, source: str, amount: int) -> None:
        self._move(source, self.custody_account, amount)

    def transfer_out(self, destination: str, amount: int) -> None:
        self._move(self.custody_account, destination, amount)
