"""
oracle.py - USD valuation of collateral amounts

PriceOracleAdapter is a pure query layer: it holds no mutable state and
reads the feed on every call, so results always reflect the feed's
current answer.

    usd_value(asset, amount)            = price * 1e10 * amount // 1e18
    token_amount_from_usd(asset, usd)   = usd * 1e18 // (price * 1e10)

with ``price`` the 8-decimal feed answer. All arithmetic is integer and
rounds toward zero.
"""

from __future__ import annotations
import logging
from typing import Dict, Mapping, Tuple

from .config import EngineConfig
from .core import OracleUnavailable, DivideByZero, InvalidConfig
from .price_feed import PriceFeed

logger = logging.getLogger(__name__)


class PriceOracleAdapter:
    """
    Converts between collateral amounts and USD values.

    Args:
        price_feeds: Ordered mapping of asset id -> feed.
        config: Engine parameters (precision, feed scaling).

    Raises:
        InvalidConfig: A feed's decimals do not scale to ``precision``
            through ``additional_feed_precision``
    """

    def __init__(self, price_feeds: Mapping[str, PriceFeed], config: EngineConfig):
        self._feeds: Dict[str, PriceFeed] = dict(price_feeds)
        self.config = config
        for asset, feed in self._feeds.items():
            if feed is None:
                continue
            if 10 ** feed.decimals * config.additional_feed_precision != config.precision:
                raise InvalidConfig(
                    f"Price feed for {asset!r} reports {feed.decimals} decimals, "
                    f"which additional_feed_precision does not scale to precision"
                )

    @property
    def assets(self) -> Tuple[str, ...]:
        return tuple(self._feeds)

    def has_feed(self, asset: str) -> bool:
        return self._feeds.get(asset) is not None

    def feed_for(self, asset: str) -> PriceFeed:
        """
        Raises:
            OracleUnavailable: If no feed is configured for the asset
        """
        feed = self._feeds.get(asset)
        if feed is None:
            raise OracleUnavailable(f"No price feed configured for {asset!r}")
        return feed

    def price(self, asset: str) -> int:
        """
        Latest feed answer for ``asset`` (8 decimals).

        Raises:
            OracleUnavailable: No feed, the feed call failed, or a negative answer
        """
        feed = self.feed_for(asset)
        try:
            answer = feed.latest_round_data().answer
        except OracleUnavailable:
            raise
        except Exception as err:
            raise OracleUnavailable(f"Price feed for {asset!r} failed: {err}") from err
        if answer < 0:
            raise OracleUnavailable(f"Price feed for {asset!r} returned negative answer {answer}")
        return answer

    def _scaled_price(self, asset: str) -> int:
        return self.price(asset) * self.config.additional_feed_precision

    def usd_value(self, asset: str, amount: int) -> int:
        """USD value (18 decimals) of ``amount`` base units of ``asset``."""
        return self._scaled_price(asset) * amount // self.config.precision

    def token_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        """
        Base units of ``asset`` worth ``usd_amount`` (18 decimals).

        Raises:
            DivideByZero: If the feed answers zero
        """
        scaled = self._scaled_price(asset)
        if scaled == 0:
            raise DivideByZero(f"Price of {asset!r} is zero")
        return usd_amount * self.config.precision // scaled
