"""Access and mutual-exclusion gates wrapped around ledger entry points."""

from .access import OperatorGate
from .reentrancy import ReentrancyGuard

__all__ = ["OperatorGate", "ReentrancyGuard"]
