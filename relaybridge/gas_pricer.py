"""A gas pricer that adds a fixed premium per priority to the suggested price."""

from __future__ import annotations

from typing import Any, Protocol

SLOW_PREMIUM = 50000000000
MEDIUM_PREMIUM = 80000000000
FAST_PREMIUM = 140000000000


class GasPriceClient(Protocol):
    def suggest_gas_price(self) -> int: ...


class StaticGasPriceDeterminant:
    """Prices gas as the node's suggestion plus a fixed premium."""

    def __init__(self, client: GasPriceClient, opts: Any = None) -> None:
        self.client = client
        self.opts = opts

    def gas_price(self, priority: int) -> list[int]:
        """Return the gas price for ``priority``: 0 is slow, 2 is fast, anything else medium."""
        suggest = self.client.suggest_gas_price()
        if priority == 0:
            premium = SLOW_PREMIUM
        elif priority == 2:
            premium = FAST_PREMIUM
        else:
            premium = MEDIUM_PREMIUM
        return [suggest + premium]