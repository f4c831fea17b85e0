from __future__ import annotations

from ..errors import NotOperator


class OperatorGate:
    """Admits only the configured operator identity."""

    def __init__(self, operator: str):
        if not operator:
            raise ValueError("operator identity required")
        self.operator = str(operator)

    def require_operator(self, caller: str) -> None:
        if caller != self.operator:
            raise NotOperator(f"{caller!r} is not the operator")
