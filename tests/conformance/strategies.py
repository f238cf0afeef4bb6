"""
Hypothesis strategies and a scenario runner shared by the conformance suite.

An operation is a tuple whose first element names the engine call:

    ("deposit", user, amount)
    ("redeem", user, amount)
    ("mint", user, amount)
    ("burn", user, amount)
    ("liquidate", liquidator, user, amount)
    ("price", answer)
"""

from typing import Any, Dict, List, Tuple

from hypothesis import strategies as st

from stablecoin import EngineError

from tests.helpers import E18, fund, weth_engine

USERS = ["alice", "bob", "carol"]
STARTING_WETH = 100 * E18
UNLIMITED = 10 ** 40

amounts = st.integers(min_value=0, max_value=60 * E18)
mint_amounts = st.integers(min_value=0, max_value=60000 * E18)
users = st.sampled_from(USERS)

operation = st.one_of(
    st.tuples(st.just("deposit"), users, amounts),
    st.tuples(st.just("redeem"), users, amounts),
    st.tuples(st.just("mint"), users, mint_amounts),
    st.tuples(st.just("burn"), users, mint_amounts),
    st.tuples(st.just("liquidate"), users, users, mint_amounts),
    st.tuples(st.just("price"), st.integers(min_value=1, max_value=4000).map(lambda usd: usd * 10 ** 8)),
)

operations = st.lists(operation, min_size=1, max_size=25)


def new_scenario():
    """
    A WETH-backed engine with every user funded and both tokens approved.

    Returns:
        (ledger, weth, dsc, feed, engine)
    """
    ledger, weth, dsc, feed, engine = weth_engine()
    for user in USERS:
        fund(weth, engine, user, STARTING_WETH)
        weth.approve(user, engine.address, UNLIMITED)
        dsc.approve(user, engine.address, UNLIMITED)
    return ledger, weth, dsc, feed, engine


def apply(engine, feed, op: Tuple) -> bool:
    """Run one operation. True if it applied, False if the engine refused it."""
    kind = op[0]
    try:
        if kind == "deposit":
            engine.deposit_collateral(op[1], "WETH", op[2])
        elif kind == "redeem":
            engine.redeem_collateral(op[1], "WETH", op[2])
        elif kind == "mint":
            engine.mint_dsc(op[1], op[2])
        elif kind == "burn":
            engine.burn_dsc(op[1], op[2])
        elif kind == "liquidate":
            engine.liquidate(op[1], "WETH", op[2], op[3])
        elif kind == "price":
            feed.update_answer(op[1])
        else:
            raise ValueError(f"Unknown operation {kind!r}")
    except EngineError:
        return False
    return True


def observable_state(ledger, engine) -> Dict[str, Any]:
    """Everything a failed operation must leave untouched."""
    balances: Dict[Tuple[str, str], int] = {
        (wallet, symbol): amount
        for wallet, held in ledger.balances.items()
        for symbol, amount in held.items()
        if amount != 0
    }
    return {
        'balances': balances,
        'unit_states': {symbol: ledger.get_unit_state(symbol) for symbol in ledger.list_units()},
        'log_length': len(ledger.transaction_log),
        'debt': engine.debt.snapshot(),
        'collateral': {user: engine.get_collateral_balance_of_user(user, "WETH") for user in USERS},
        'events': engine.events,
    }


def run(ops: List[Tuple]):
    """Apply ``ops`` to a fresh scenario and return it with the outcomes."""
    ledger, weth, dsc, feed, engine = new_scenario()
    outcomes = [apply(engine, feed, op) for op in ops]
    return (ledger, weth, dsc, feed, engine), outcomes
