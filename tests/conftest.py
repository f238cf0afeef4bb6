"""
conftest.py - Shared pytest fixtures for stablecoin tests

Provides common fixtures used across unit and conformance tests:
- A token ledger with WETH, WBTC and DSC registered
- Static ETH/USD and BTC/USD feeds at 2000 and 1000 USD
- An engine that owns DSC
- Users funded with collateral, with deposits and debt in place
"""

import pytest
from datetime import datetime

from stablecoin import Ledger, LedgerToken, StablecoinToken, StaticPriceFeed, EngineConfig

from tests.helpers import (
    ETH_USD_PRICE, BTC_USD_PRICE, AMOUNT_COLLATERAL, AMOUNT_TO_MINT,
    STARTING_USER_BALANCE, USER, DEPLOYER, fund, build_engine,
)


# =============================================================================
# LEDGER AND TOKENS
# =============================================================================

@pytest.fixture
def ledger():
    """Token ledger in test mode."""
    return Ledger("test", datetime(2025, 1, 1), test_mode=True)


@pytest.fixture
def weth(ledger):
    return LedgerToken(ledger, "WETH", "Wrapped Ether")


@pytest.fixture
def wbtc(ledger):
    return LedgerToken(ledger, "WBTC", "Wrapped Bitcoin")


@pytest.fixture
def dsc(ledger):
    return StablecoinToken(ledger, owner=DEPLOYER)


# =============================================================================
# PRICE FEEDS
# =============================================================================

@pytest.fixture
def eth_usd_feed():
    return StaticPriceFeed(ETH_USD_PRICE)


@pytest.fixture
def btc_usd_feed():
    return StaticPriceFeed(BTC_USD_PRICE)


# =============================================================================
# ENGINE
# =============================================================================

@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def engine(weth, wbtc, dsc, eth_usd_feed, btc_usd_feed, config):
    """Engine over WETH and WBTC that owns DSC."""
    return build_engine([weth, wbtc], [eth_usd_feed, btc_usd_feed], dsc, config)


@pytest.fixture
def funded_user(engine, weth, wbtc):
    """USER holds STARTING_USER_BALANCE of WETH and WBTC, engine approved."""
    fund(weth, engine, USER, STARTING_USER_BALANCE)
    fund(wbtc, engine, USER, STARTING_USER_BALANCE)
    return USER


@pytest.fixture
def deposited(engine, funded_user):
    """USER has AMOUNT_COLLATERAL of WETH deposited and no debt."""
    engine.deposit_collateral(funded_user, "WETH", AMOUNT_COLLATERAL)
    return funded_user


@pytest.fixture
def minted(engine, funded_user, dsc):
    """USER has AMOUNT_COLLATERAL WETH deposited and AMOUNT_TO_MINT DSC minted."""
    engine.deposit_collateral_and_mint_dsc(funded_user, "WETH", AMOUNT_COLLATERAL, AMOUNT_TO_MINT)
    dsc.approve(funded_user, engine.address, AMOUNT_TO_MINT)
    return funded_user
