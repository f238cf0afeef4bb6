"""
helpers.py - Constants and builders shared by stablecoin tests

The numbers follow the usual engine test scenario: ETH at 2000 USD, BTC at
1000 USD, users depositing 10 WETH and minting 100 DSC.
"""

from datetime import datetime
from typing import Optional, Sequence

from stablecoin import (
    Ledger, LedgerToken, StablecoinToken, StaticPriceFeed, StablecoinEngine, EngineConfig,
)

E18 = 10 ** 18
ETH_USD_PRICE = 2000 * 10 ** 8
BTC_USD_PRICE = 1000 * 10 ** 8

AMOUNT_COLLATERAL = 10 * E18
AMOUNT_TO_MINT = 100 * E18
STARTING_USER_BALANCE = 10 * E18

USER = "user"
LIQUIDATOR = "liquidator"
DEPLOYER = "deployer"


def fund(token: LedgerToken, engine: StablecoinEngine, user: str, amount: int) -> None:
    """Issue ``amount`` of ``token`` to ``user`` and approve the engine for it."""
    token.issue(user, amount)
    token.approve(user, engine.address, amount)


def build_engine(
    collateral: Sequence,
    feeds: Sequence,
    dsc: StablecoinToken,
    config: Optional[EngineConfig] = None,
) -> StablecoinEngine:
    """Create an engine and hand it ownership of DSC."""
    engine = StablecoinEngine(collateral, feeds, dsc, config=config)
    dsc.transfer_ownership(dsc.owner, engine.address)
    return engine


def weth_engine(eth_price: int = ETH_USD_PRICE):
    """
    Standalone single-collateral setup for property tests, where function
    fixtures cannot be shared across generated examples.

    Returns:
        (ledger, weth, dsc, feed, engine)
    """
    ledger = Ledger("prop", datetime(2025, 1, 1), test_mode=True)
    weth = LedgerToken(ledger, "WETH", "Wrapped Ether")
    dsc = StablecoinToken(ledger, owner=DEPLOYER)
    feed = StaticPriceFeed(eth_price)
    engine = build_engine([weth], [feed], dsc)
    return ledger, weth, dsc, feed, engine
