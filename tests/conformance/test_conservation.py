"""
Conservation Conformance Tests

INVARIANT: The engine's books match the token ledgers.

    ∀ reachable state:
        dsc.total_supply()            = Σ_users debt(user)
        weth.balance_of(engine)       = Σ_users deposited(user, WETH)
        Σ_wallets balance(w, unit)    = 0   for every unit (system included)

Deposits, redemptions, mints, burns and liquidations move value; none of
them create or destroy it outside the system wallet.
"""

from hypothesis import given, settings, note

from tests.conformance.strategies import operations, run, USERS, STARTING_WETH


class TestConservationProperties:
    """Property-based tests for conservation invariant."""

    @given(operations)
    @settings(max_examples=75, deadline=None)
    def test_dsc_supply_equals_total_debt(self, ops):
        (ledger, weth, dsc, feed, engine), outcomes = run(ops)
        note(f"outcomes: {outcomes}")
        assert dsc.total_supply() == engine.total_debt()

    @given(operations)
    @settings(max_examples=75, deadline=None)
    def test_custody_equals_deposits(self, ops):
        (ledger, weth, dsc, feed, engine), _ = run(ops)
        deposited = sum(engine.get_collateral_balance_of_user(user, "WETH") for user in USERS)
        assert weth.balance_of(engine.address) == deposited

    @given(operations)
    @settings(max_examples=75, deadline=None)
    def test_collateral_is_never_created(self, ops):
        (ledger, weth, dsc, feed, engine), _ = run(ops)
        held = sum(weth.balance_of(user) for user in USERS) + weth.balance_of(engine.address)
        assert held == STARTING_WETH * len(USERS)
        assert weth.total_supply() == STARTING_WETH * len(USERS)

    @given(operations)
    @settings(max_examples=50, deadline=None)
    def test_double_entry_holds(self, ops):
        (ledger, weth, dsc, feed, engine), _ = run(ops)
        assert ledger.verify_double_entry()['valid']
