"""Config-backed market registry."""
from __future__ import annotations

import logging
from typing import Iterable

from .config import AppConfig, MarketConfig
from .models import MarketInfo, is_native_asset, is_null_address

logger = logging.getLogger(__name__)


class StaticMarketRegistry:
    """Map underlying assets to market tokens.

    Whether a market is the native-asset market is decided once, here: its
    underlying must be ``NATIVE_ASSET`` and its symbol ``native_market_symbol``.
    A market that satisfies only one of the two is rejected. Entries
    pointing at the null address are treated as unconfigured.
    """

    def __init__(
        self, markets: Iterable[MarketConfig], native_market_symbol: str = "cETH"
    ) -> None:
        self._by_underlying: dict[str, MarketInfo] = {}
        self._by_token: dict[str, MarketInfo] = {}

        for market in markets:
            if is_null_address(market.market_token):
                logger.debug("Skipping unconfigured market for %s", market.underlying)
                continue
            is_native = is_native_asset(market.underlying)
            if is_native != (market.symbol == native_market_symbol):
                raise ValueError(
                    f"Market '{market.symbol}' disagrees with native market symbol "
                    f"'{native_market_symbol}' on holding the native asset"
                )
            info = MarketInfo(
                market_token=market.market_token,
                underlying=market.underlying,
                symbol=market.symbol,
                is_native=is_native,
            )
            self._by_underlying[market.underlying.lower()] = info
            self._by_token[market.market_token.lower()] = info

    @classmethod
    def from_config(cls, config: AppConfig) -> StaticMarketRegistry:
        return cls(config.markets, config.protocol.native_market_symbol)

    def market_for(self, underlying: str) -> MarketInfo | None:
        return self._by_underlying.get(underlying.lower())

    def market_by_token(self, market_token: str) -> MarketInfo | None:
        return self._by_token.get(market_token.lower())

    def markets(self) -> tuple[MarketInfo, ...]:
        return tuple(self._by_underlying.values())
