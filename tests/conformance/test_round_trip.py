"""
Round Trip and Valuation Conformance Tests

INVARIANT: Undoing an operation restores the account; valuation is additive
and monotone in price.

    ∀ a > 0:
        deposit(u, a); redeem(u, a)  ⟹  balances as before
        mint(u, m); burn(u, m)       ⟹  debt(u) = 0, health = MAX
    collateral_value(u) = Σ_assets usd_value(asset, deposited(u, asset))
    p1 ≤ p2 ⟹ collateral_value(u) at p1 ≤ collateral_value(u) at p2
"""

from datetime import datetime

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from stablecoin import (
    Ledger, LedgerToken, StablecoinToken, StaticPriceFeed, MAX_HEALTH_FACTOR,
)

from tests.helpers import E18, DEPLOYER, fund, build_engine, weth_engine

eth_amounts = st.integers(min_value=1, max_value=1000 * E18)
prices = st.integers(min_value=0, max_value=10 ** 6 * 10 ** 8)


def two_asset_engine(eth_price, btc_price):
    ledger = Ledger("prop", datetime(2025, 1, 1), test_mode=True)
    weth = LedgerToken(ledger, "WETH", "Wrapped Ether")
    wbtc = LedgerToken(ledger, "WBTC", "Wrapped Bitcoin")
    dsc = StablecoinToken(ledger, owner=DEPLOYER)
    engine = build_engine([weth, wbtc], [StaticPriceFeed(eth_price), StaticPriceFeed(btc_price)], dsc)
    return weth, wbtc, engine


class TestRoundTripProperties:

    @given(eth_amounts)
    @settings(max_examples=50, deadline=None)
    def test_deposit_then_redeem(self, amount):
        ledger, weth, dsc, feed, engine = weth_engine()
        fund(weth, engine, "alice", amount)

        engine.deposit_collateral("alice", "WETH", amount)
        engine.redeem_collateral("alice", "WETH", amount)

        assert weth.balance_of("alice") == amount
        assert weth.balance_of(engine.address) == 0
        assert engine.get_collateral_balance_of_user("alice", "WETH") == 0

    @given(eth_amounts, st.integers(min_value=1, max_value=100))
    @settings(max_examples=50, deadline=None)
    def test_mint_then_burn(self, collateral, percent):
        ledger, weth, dsc, feed, engine = weth_engine()
        fund(weth, engine, "alice", collateral)
        engine.deposit_collateral("alice", "WETH", collateral)

        # Anything up to half the collateral value keeps the account healthy
        mint = engine.get_account_collateral_value("alice") // 2 * percent // 100
        assume(mint > 0)
        engine.mint_dsc("alice", mint)
        dsc.approve("alice", engine.address, mint)
        engine.burn_dsc("alice", mint)

        assert engine.get_account_information("alice").total_minted == 0
        assert engine.get_health_factor("alice") == MAX_HEALTH_FACTOR
        assert dsc.total_supply() == 0


class TestValuationProperties:

    @given(eth_amounts, eth_amounts, prices, prices)
    @settings(max_examples=50, deadline=None)
    def test_collateral_value_is_per_asset_sum(self, eth, btc, eth_price, btc_price):
        weth, wbtc, engine = two_asset_engine(eth_price, btc_price)
        fund(weth, engine, "alice", eth)
        fund(wbtc, engine, "alice", btc)
        engine.deposit_collateral("alice", "WETH", eth)
        engine.deposit_collateral("alice", "WBTC", btc)

        expected = engine.get_usd_value("WETH", eth) + engine.get_usd_value("WBTC", btc)
        assert engine.get_account_collateral_value("alice") == expected

    @given(eth_amounts, prices, prices)
    @settings(max_examples=50, deadline=None)
    def test_collateral_value_monotone_in_price(self, amount, p1, p2):
        low, high = sorted((p1, p2))
        ledger, weth, dsc, feed, engine = weth_engine(low)
        fund(weth, engine, "alice", amount)
        engine.deposit_collateral("alice", "WETH", amount)

        at_low = engine.get_account_collateral_value("alice")
        feed.update_answer(high)
        assert at_low <= engine.get_account_collateral_value("alice")

    @given(st.integers(min_value=1, max_value=10 ** 6 * 10 ** 8), st.integers(min_value=0, max_value=10 ** 30))
    @settings(max_examples=100, deadline=None)
    def test_conversion_never_overpays(self, price, usd):
        """Converting USD to tokens and back never yields more USD."""
        ledger, weth, dsc, feed, engine = weth_engine(price)
        tokens = engine.get_token_amount_from_usd("WETH", usd)
        assert engine.get_usd_value("WETH", tokens) <= usd
