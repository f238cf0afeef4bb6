#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Deposit, Mint, Crash, Liquidate

A step-by-step walk through the stablecoin engine. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Setup        - Token ledger, collateral tokens, price feed, engine
  4-5:  Borrowing    - Deposit collateral, mint DSC, the health factor
  6:    Refusals     - Over-minting is refused and leaves no trace
  7-8:  Liquidation  - A price crash, then a liquidator closes the position
  9:    Books        - DSC supply equals debt; custody equals deposits

Run:
    python demo.py              # Interactive mode (press Enter for each step)
    python demo.py --quick      # Run all steps without pausing
    python demo.py --verbose    # Also show the engine's log lines
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import sys

from stablecoin import (
    Ledger, LedgerToken, StablecoinToken, TimeSeriesPriceFeed, StablecoinEngine,
    HealthFactorBroken, MAX_HEALTH_FACTOR, SYSTEM_WALLET,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

E18 = 10 ** 18


@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)

    eth_price: int = 2000 * 10 ** 8
    crash_price: int = 18 * 10 ** 8

    alice_collateral: int = 10 * E18
    alice_mint: int = 100 * E18

    liquidator_collateral: int = 20 * E18
    liquidator_mint: int = 100 * E18


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def fmt(amount: int) -> str:
    """Base units -> whole tokens, for display."""
    return f"{amount / E18:,.6f}"


def fmt_hf(health_factor: int) -> str:
    if health_factor == MAX_HEALTH_FACTOR:
        return "MAX (no debt)"
    return f"{health_factor / E18:.4f}"


# ============================================================================
# PHASE 1: SETUP (Steps 1-3)
# ============================================================================

def step_01_token_ledger():
    """Create the ledger that holds every token balance."""
    step_header(1, "The Token Ledger",
        "Every token balance lives in one double-entry ledger.")

    print(">>> chain = Ledger('chain', initial_time=datetime(2025, 1, 1, 9, 0))")
    chain = Ledger("chain", initial_time=CONFIG.start_time)

    print(">>> weth = LedgerToken(chain, 'WETH', 'Wrapped Ether')")
    weth = LedgerToken(chain, "WETH", "Wrapped Ether")

    print(">>> dsc = StablecoinToken(chain, owner='deployer')")
    dsc = StablecoinToken(chain, owner="deployer")

    section_header("Initial State")
    print(f"Units:     {chain.list_units()}")
    print(f"Wallets:   {sorted(chain.list_wallets())}")
    print(f"DSC owner: {dsc.owner}")

    print("""
    Tokens are issued out of the SYSTEM wallet and burned back into it,
    so the sum of every unit's balances over all wallets is always zero.
    """)
    return chain, weth, dsc


def step_02_price_feed(chain: Ledger):
    """A feed whose answer follows the ledger clock."""
    step_header(2, "The Price Feed",
        "Collateral is valued through an 8-decimal USD feed.")

    crash_time = CONFIG.start_time + timedelta(days=1)
    feed = TimeSeriesPriceFeed(chain, [
        (CONFIG.start_time, CONFIG.eth_price),
        (crash_time, CONFIG.crash_price),
    ])

    print(f"ETH/USD now:        {feed.latest_round_data().answer / 10 ** 8:,.2f}")
    print(f"ETH/USD at {crash_time}: {CONFIG.crash_price / 10 ** 8:,.2f}  (scheduled crash)")
    return feed, crash_time


def step_03_engine(weth: LedgerToken, dsc: StablecoinToken, feed):
    """Deploy the engine and hand it the right to mint DSC."""
    step_header(3, "The Engine",
        "The engine must own DSC before it can mint.")

    print(">>> engine = StablecoinEngine([weth], [feed], dsc)")
    engine = StablecoinEngine([weth], [feed], dsc)
    print(">>> dsc.transfer_ownership('deployer', engine.address)")
    dsc.transfer_ownership("deployer", engine.address)

    section_header("Parameters")
    print(f"Collateral:            {engine.get_collateral_tokens()}")
    print(f"Liquidation threshold: {engine.get_liquidation_threshold()}%  "
          f"(positions must be {engine.config.overcollateralization:.0%} collateralized)")
    print(f"Liquidation bonus:     {engine.get_liquidation_bonus()}%")
    print(f"DSC owner:             {dsc.owner}")
    return engine


# ============================================================================
# PHASE 2: BORROWING (Steps 4-6)
# ============================================================================

def step_04_deposit_and_mint(engine: StablecoinEngine, weth: LedgerToken, dsc: StablecoinToken):
    step_header(4, "Deposit and Mint",
        "Lock 10 WETH and mint 100 DSC against it in one atomic call.")

    weth.issue("alice", CONFIG.alice_collateral)
    weth.approve("alice", engine.address, CONFIG.alice_collateral)
    engine.deposit_collateral_and_mint_dsc("alice", "WETH", CONFIG.alice_collateral, CONFIG.alice_mint)
    dsc.approve("alice", engine.address, CONFIG.alice_mint)

    info = engine.get_account_information("alice")
    print(f"alice collateral value: {fmt(info.collateral_value_usd)} USD")
    print(f"alice debt:             {fmt(info.total_minted)} DSC")
    print(f"alice DSC balance:      {fmt(dsc.balance_of('alice'))}")
    print(f"engine WETH custody:    {fmt(weth.balance_of(engine.address))}")


def step_05_health_factor(engine: StablecoinEngine):
    step_header(5, "The Health Factor",
        "health = (collateral_usd * 50 / 100) / debt; below 1.0 is liquidatable.")

    print(f"alice health factor: {fmt_hf(engine.get_health_factor('alice'))}")
    print(f"bob (no debt):       {fmt_hf(engine.get_health_factor('bob'))}")


def step_06_refused_mint(engine: StablecoinEngine, dsc: StablecoinToken):
    step_header(6, "A Refused Mint",
        "Minting past the limit raises and changes nothing.")

    before = (engine.total_debt(), dsc.total_supply())
    try:
        engine.mint_dsc("alice", 20000 * E18)
    except HealthFactorBroken as err:
        print(f"Refused: {err}")
    after = (engine.total_debt(), dsc.total_supply())
    print(f"Debt and supply before: {[fmt(x) for x in before]}")
    print(f"Debt and supply after:  {[fmt(x) for x in after]}")


# ============================================================================
# PHASE 3: LIQUIDATION (Steps 7-8)
# ============================================================================

def step_07_crash(chain: Ledger, engine: StablecoinEngine, weth: LedgerToken, dsc: StablecoinToken, crash_time):
    step_header(7, "The Crash",
        "ETH falls from 2000 to 18 USD; alice becomes liquidatable.")

    # The liquidator borrows its DSC before the crash
    weth.issue("liquidator", CONFIG.liquidator_collateral)
    weth.approve("liquidator", engine.address, CONFIG.liquidator_collateral)
    engine.deposit_collateral_and_mint_dsc(
        "liquidator", "WETH", CONFIG.liquidator_collateral, CONFIG.liquidator_mint)
    dsc.approve("liquidator", engine.address, CONFIG.liquidator_mint)

    chain.advance_time(crash_time)
    print(f"Clock:                  {chain.current_time}")
    print(f"alice health factor:    {fmt_hf(engine.get_health_factor('alice'))}")
    print(f"liquidator health:      {fmt_hf(engine.get_health_factor('liquidator'))}")
    print(f"engine solvent:         {engine.is_solvent()}")


def step_08_liquidate(engine: StablecoinEngine, weth: LedgerToken):
    step_header(8, "Liquidation",
        "The liquidator repays alice's debt and takes collateral plus 10%.")

    result = engine.liquidate("liquidator", "WETH", "alice", CONFIG.alice_mint)

    print(f"Debt covered:        {fmt(result.debt_covered)} DSC")
    print(f"Collateral seized:   {fmt(result.collateral_seized)} WETH "
          f"(bonus {fmt(result.bonus_collateral)})")
    print(f"alice health:        {fmt_hf(result.starting_health_factor)} -> "
          f"{fmt_hf(result.ending_health_factor)}")
    print(f"alice keeps:         {fmt(engine.get_collateral_balance_of_user('alice', 'WETH'))} WETH")
    print(f"liquidator WETH:     {fmt(weth.balance_of('liquidator'))}")


# ============================================================================
# PHASE 4: BOOKS (Step 9)
# ============================================================================

def step_09_books(chain: Ledger, engine: StablecoinEngine, weth: LedgerToken, dsc: StablecoinToken):
    step_header(9, "The Books Balance",
        "DSC supply equals debt, custody equals deposits, the ledger sums to zero.")

    deposits = sum(engine.get_collateral_balance_of_user(u, "WETH") for u in ("alice", "liquidator"))
    print(f"DSC supply:       {fmt(dsc.total_supply())}")
    print(f"Total debt:       {fmt(engine.total_debt())}")
    print(f"WETH in custody:  {fmt(weth.balance_of(engine.address))}")
    print(f"Recorded deposits:{fmt(deposits):>16}")
    print(f"System DSC:       {fmt(int(chain.get_balance(SYSTEM_WALLET, 'DSC')))}")
    print(f"Double entry:     {chain.verify_double_entry()['valid']}")

    section_header("Collateral Events")
    for event in engine.events:
        print(f"  {event}")


def main():
    """Run the complete tutorial."""
    if "--verbose" in sys.argv:
        logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")

    print("=" * 70)
    print("       STABLECOIN ENGINE - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    chain, weth, dsc = step_01_token_ledger()
    wait_for_enter()

    feed, crash_time = step_02_price_feed(chain)
    wait_for_enter()

    engine = step_03_engine(weth, dsc, feed)
    wait_for_enter()

    step_04_deposit_and_mint(engine, weth, dsc)
    wait_for_enter()

    step_05_health_factor(engine)
    wait_for_enter()

    step_06_refused_mint(engine, dsc)
    wait_for_enter()

    step_07_crash(chain, engine, weth, dsc, crash_time)
    wait_for_enter()

    step_08_liquidate(engine, weth)
    wait_for_enter()

    step_09_books(chain, engine, weth, dsc)

    print("""
    Next steps:
      - See stablecoin/engine.py for the public entry points
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
