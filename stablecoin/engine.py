"""
engine.py - Public entry points of the collateral engine

StablecoinEngine wires the components together and is the only thing
callers use:

    PriceOracleAdapter  <- CollateralLedger --+
                           DebtLedger --------+-> HealthFactorCalculator
                                                    |
                           MintBurnController <-----+
                           LiquidationEngine  <-----+

Every mutating entry point is one atomic transaction: it holds the
reentrancy guard, snapshots the collateral and debt ledgers and the token
ledgers behind every token, and restores all of them if anything
raises. A caller therefore sees either the full effect of an operation or
none of it, and always a specific exception.
"""

from __future__ import annotations
from contextlib import contextmanager
import logging
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from .accounts import CollateralLedger, DebtLedger, CollateralEvent
from .config import EngineConfig
from .core import ConfigLengthMismatch, InvalidConfig, ZeroAmount
from .guard import ReentrancyGuard
from .health import AccountInformation, HealthFactorCalculator, calculate_health_factor
from .liquidation import LiquidationEngine, LiquidationResult
from .mint_burn import MintBurnController
from .oracle import PriceOracleAdapter
from .price_feed import PriceFeed
from .tokens import MintableToken, Token

logger = logging.getLogger(__name__)


@runtime_checkable
class Checkpointable(Protocol):
    """State that can be captured and restored (the token Ledger)."""

    def checkpoint(self) -> Any: ...

    def rollback(self, snapshot: Any) -> None: ...


def _journals_of(tokens: Sequence[Token]) -> List[Checkpointable]:
    """
    Distinct checkpointable ledgers behind the given tokens.

    A token whose balances live outside any checkpointable ledger could not
    be restored when an operation fails after moving it, so it is refused.
    """
    journals: List[Checkpointable] = []
    for tok in tokens:
        ledger = getattr(tok, "ledger", None)
        if not isinstance(ledger, Checkpointable):
            raise InvalidConfig(f"Token {tok.symbol!r} has no ledger that can be checkpointed")
        if not any(ledger is j for j in journals):
            journals.append(ledger)
    return journals


class StablecoinEngine:
    """
    Collateral accounting and liquidation engine for a pegged token.

    Args:
        collateral_tokens: Allowed collateral, in order. Asset ids are the
            tokens' symbols.
        price_feeds: One USD feed per collateral token, same order.
        dsc: The pegged token. Minting requires the engine to own it.
        config: Engine parameters (defaults to EngineConfig()).
        address: The engine's wallet; holds collateral in custody.

    Raises:
        ConfigLengthMismatch: tokens and feeds differ in length
        InvalidConfig: a collateral symbol appears twice, or a token has no
            checkpointable ledger

    Example:
        engine = StablecoinEngine([weth, wbtc], [eth_usd, btc_usd], dsc)
        dsc.transfer_ownership("deployer", engine.address)

        weth.approve("alice", engine.address, 10 * 10 ** 18)
        engine.deposit_collateral_and_mint_dsc("alice", "WETH", 10 * 10 ** 18, 100 * 10 ** 18)
    """

    def __init__(
        self,
        collateral_tokens: Sequence[Token],
        price_feeds: Sequence[PriceFeed],
        dsc: MintableToken,
        config: Optional[EngineConfig] = None,
        address: str = "dsc_engine",
    ):
        if len(collateral_tokens) != len(price_feeds):
            raise ConfigLengthMismatch(
                f"{len(collateral_tokens)} collateral tokens but {len(price_feeds)} price feeds"
            )
        symbols = [tok.symbol for tok in collateral_tokens]
        if len(set(symbols)) != len(symbols):
            raise InvalidConfig(f"Duplicate collateral token in {symbols}")

        self.address = address
        self.config = config or EngineConfig()
        self.dsc = dsc

        self.oracle = PriceOracleAdapter(dict(zip(symbols, price_feeds)), self.config)
        self.collateral = CollateralLedger(self.oracle, dict(zip(symbols, collateral_tokens)), address)
        self.debt = DebtLedger()
        self.health = HealthFactorCalculator(self.collateral, self.debt, self.config)
        self.mint_burn = MintBurnController(dsc, self.debt, self.health, address)
        self.liquidation_engine = LiquidationEngine(
            self.oracle, self.collateral, self.health, self.mint_burn, self.config
        )
        self.guard = ReentrancyGuard()
        self._journals = _journals_of([*collateral_tokens, dsc])

    def __repr__(self) -> str:
        return f"StablecoinEngine({self.address!r}, collateral={list(self.collateral.assets)}, dsc={self.dsc.symbol!r})"

    # ========================================================================
    # TRANSACTION BOUNDARY
    # ========================================================================

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        with self.guard.hold():
            collateral_snapshot = self.collateral.snapshot()
            debt_snapshot = self.debt.snapshot()
            ledger_snapshots = [(journal, journal.checkpoint()) for journal in self._journals]
            try:
                yield
            except Exception as err:
                for journal, snapshot in reversed(ledger_snapshots):
                    journal.rollback(snapshot)
                self.debt.restore(debt_snapshot)
                self.collateral.restore(collateral_snapshot)
                logger.warning("%s rolled back: %s: %s", operation, type(err).__name__, err)
                raise

    # ========================================================================
    # COLLATERAL
    # ========================================================================

    def deposit_collateral(self, user: str, asset: str, amount: int) -> None:
        """
        Deposit ``amount`` of ``asset``; ``user`` must have approved the engine.

        Raises:
            ZeroAmount, AssetNotAllowed, TransferFailed
        """
        with self._transaction("deposit_collateral"):
            self.collateral.deposit(user, asset, amount)
        logger.info("%s deposited %d %s", user, amount, asset)

    def deposit_collateral_and_mint_dsc(self, user: str, asset: str, amount_collateral: int, amount_dsc: int) -> None:
        """
        Deposit collateral and mint DSC against it in one step.

        Raises:
            ZeroAmount, AssetNotAllowed, TransferFailed, HealthFactorBroken, MintFailed
        """
        with self._transaction("deposit_collateral_and_mint_dsc"):
            self.collateral.deposit(user, asset, amount_collateral)
            self.mint_burn.mint(user, amount_dsc)
        logger.info("%s deposited %d %s and minted %d %s",
                    user, amount_collateral, asset, amount_dsc, self.dsc.symbol)

    def redeem_collateral(self, user: str, asset: str, amount: int) -> None:
        """
        Withdraw ``amount`` of ``asset``. The account must stay healthy.

        Raises:
            ZeroAmount, AssetNotAllowed, LedgerUnderflow, TransferFailed, HealthFactorBroken
        """
        with self._transaction("redeem_collateral"):
            self._check_redeem(asset, amount)
            self.collateral.redeem(asset, amount, user, user)
            self.health.assert_healthy(user)
        logger.info("%s redeemed %d %s", user, amount, asset)

    def redeem_collateral_for_dsc(self, user: str, asset: str, amount_collateral: int, amount_dsc: int) -> None:
        """
        Burn ``amount_dsc`` of the user's debt and withdraw collateral in one step.

        Raises:
            ZeroAmount, AssetNotAllowed, LedgerUnderflow, TransferFailed, HealthFactorBroken
        """
        with self._transaction("redeem_collateral_for_dsc"):
            self._check_redeem(asset, amount_collateral)
            self.mint_burn.burn(amount_dsc, user, user)
            self.collateral.redeem(asset, amount_collateral, user, user)
            self.health.assert_healthy(user)
        logger.info("%s burned %d %s and redeemed %d %s",
                    user, amount_dsc, self.dsc.symbol, amount_collateral, asset)

    def _check_redeem(self, asset: str, amount: int) -> None:
        if amount <= 0:
            raise ZeroAmount("Redeem amount must be more than zero")
        self.collateral.require_allowed(asset)

    # ========================================================================
    # DSC
    # ========================================================================

    def mint_dsc(self, user: str, amount: int) -> None:
        """
        Raises:
            ZeroAmount, HealthFactorBroken, MintFailed
        """
        with self._transaction("mint_dsc"):
            self.mint_burn.mint(user, amount)
        logger.info("%s minted %d %s", user, amount, self.dsc.symbol)

    def burn_dsc(self, user: str, amount: int) -> None:
        """
        Repay ``amount`` of the user's own debt with their DSC.

        Raises:
            ZeroAmount, LedgerUnderflow, TransferFailed, HealthFactorBroken
        """
        with self._transaction("burn_dsc"):
            self.mint_burn.burn(amount, user, user)
            self.health.assert_healthy(user)
        logger.info("%s burned %d %s", user, amount, self.dsc.symbol)

    # ========================================================================
    # LIQUIDATION
    # ========================================================================

    def liquidate(self, liquidator: str, asset: str, user: str, debt_to_cover: int) -> LiquidationResult:
        """
        Repay ``debt_to_cover`` of an unhealthy ``user``'s debt with the
        liquidator's DSC and receive ``asset`` collateral plus the bonus.

        Raises:
            ZeroAmount, AssetNotAllowed, HealthFactorOk, HealthFactorNotImproved,
            HealthFactorBroken, LedgerUnderflow, TransferFailed
        """
        with self._transaction("liquidate"):
            result = self.liquidation_engine.liquidate(liquidator, asset, user, debt_to_cover)
        logger.info(
            "%s liquidated %s: covered %d %s, seized %d %s (bonus %d), health %d -> %d",
            liquidator, user, debt_to_cover, self.dsc.symbol, result.collateral_seized, asset,
            result.bonus_collateral, result.starting_health_factor, result.ending_health_factor,
        )
        return result

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_health_factor(self, user: str) -> int:
        return self.health.health_factor(user)

    def get_account_information(self, user: str) -> AccountInformation:
        """(total_minted, collateral_value_usd) for ``user``."""
        return self.health.account_information(user)

    def get_account_collateral_value(self, user: str) -> int:
        return self.collateral.total_collateral_usd(user)

    def get_usd_value(self, asset: str, amount: int) -> int:
        return self.oracle.usd_value(asset, amount)

    def get_token_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        return self.oracle.token_amount_from_usd(asset, usd_amount)

    def calculate_health_factor(self, total_minted: int, collateral_value_usd: int) -> int:
        return calculate_health_factor(total_minted, collateral_value_usd, self.config)

    def get_collateral_tokens(self) -> Tuple[str, ...]:
        return self.collateral.assets

    def get_collateral_balance_of_user(self, user: str, asset: str) -> int:
        return self.collateral.balance_of(user, asset)

    def get_collateral_token_price_feed(self, asset: str) -> PriceFeed:
        return self.oracle.feed_for(asset)

    def get_dsc(self) -> MintableToken:
        return self.dsc

    def get_precision(self) -> int:
        return self.config.precision

    def get_additional_feed_precision(self) -> int:
        return self.config.additional_feed_precision

    def get_liquidation_threshold(self) -> int:
        return self.config.liquidation_threshold

    def get_liquidation_bonus(self) -> int:
        return self.config.liquidation_bonus

    def get_liquidation_precision(self) -> int:
        return self.config.liquidation_precision

    def get_min_health_factor(self) -> int:
        return self.config.min_health_factor

    @property
    def events(self) -> Tuple[CollateralEvent, ...]:
        return tuple(self.collateral.events)

    def total_debt(self) -> int:
        return self.debt.total_debt()

    def health_factors(self) -> Dict[str, int]:
        """Health factor of every account that currently owes DSC."""
        return {user: self.health.health_factor(user) for user in self.debt.users()}

    def is_solvent(self) -> bool:
        """True when no indebted account is below the minimum health factor."""
        return all(hf >= self.config.min_health_factor for hf in self.health_factors().values())
