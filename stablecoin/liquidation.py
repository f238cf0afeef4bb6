"""
liquidation.py - Forced closure of undercollateralized positions

A liquidator repays part of an unhealthy account's debt with its own DSC
and receives the equivalent collateral plus a bonus:

    equivalent = token_amount_from_usd(asset, debt_to_cover)
    bonus      = equivalent * liquidation_bonus // liquidation_precision
    seized     = equivalent + bonus

The account state (Healthy / Liquidatable) is only observed here, never
set: prices and minting move accounts between the two.

When the account's deposit of the chosen asset cannot cover ``seized``,
seizure is capped at the deposit. The bonus shrinks first; if even the
equivalent is not there, the whole deposit goes and the liquidator takes
the loss. The postconditions still apply to a capped liquidation.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from .accounts import CollateralLedger
from .config import EngineConfig
from .core import ZeroAmount, HealthFactorOk, HealthFactorNotImproved
from .health import HealthFactorCalculator
from .mint_burn import MintBurnController
from .oracle import PriceOracleAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LiquidationResult:
    """Outcome of a successful liquidation."""
    user: str
    liquidator: str
    asset: str
    debt_covered: int
    collateral_seized: int
    bonus_collateral: int
    starting_health_factor: int
    ending_health_factor: int
    capped: bool = False


class LiquidationEngine:

    def __init__(
        self,
        oracle: PriceOracleAdapter,
        collateral: CollateralLedger,
        health: HealthFactorCalculator,
        mint_burn: MintBurnController,
        config: EngineConfig,
    ):
        self.oracle = oracle
        self.collateral = collateral
        self.health = health
        self.mint_burn = mint_burn
        self.config = config

    def liquidate(self, liquidator: str, asset: str, user: str, debt_to_cover: int) -> LiquidationResult:
        """
        Cover ``debt_to_cover`` of ``user``'s debt and seize ``asset`` in return.

        Raises:
            ZeroAmount: debt_to_cover <= 0
            AssetNotAllowed: asset is not collateral
            HealthFactorOk: ``user`` is not liquidatable
            LedgerUnderflow: debt_to_cover exceeds ``user``'s debt
            HealthFactorNotImproved: the liquidation left ``user`` worse off
            HealthFactorBroken: the liquidator's own position ended unhealthy
            TransferFailed: collateral or DSC could not be moved
        """
        if debt_to_cover <= 0:
            raise ZeroAmount("Debt to cover must be more than zero")
        self.collateral.require_allowed(asset)

        starting = self.health.health_factor(user)
        if starting >= self.config.min_health_factor:
            raise HealthFactorOk(f"{user} has health factor {starting}; cannot liquidate")

        equivalent = self.oracle.token_amount_from_usd(asset, debt_to_cover)
        bonus = equivalent * self.config.liquidation_bonus // self.config.liquidation_precision
        seized, bonus, capped = self._cap_seizure(user, asset, equivalent, bonus)

        if seized > 0:
            self.collateral.redeem(asset, seized, user, liquidator)
        self.mint_burn.burn(debt_to_cover, user, liquidator)

        ending = self.health.health_factor(user)
        if ending < starting:
            raise HealthFactorNotImproved(starting, ending)
        self.health.assert_healthy(liquidator)

        return LiquidationResult(
            user=user,
            liquidator=liquidator,
            asset=asset,
            debt_covered=debt_to_cover,
            collateral_seized=seized,
            bonus_collateral=bonus,
            starting_health_factor=starting,
            ending_health_factor=ending,
            capped=capped,
        )

    def _cap_seizure(self, user: str, asset: str, equivalent: int, bonus: int):
        available = self.collateral.balance_of(user, asset)
        if equivalent + bonus <= available:
            return equivalent + bonus, bonus, False
        logger.warning(
            "Liquidation of %s capped: %d %s available, %d + %d bonus requested",
            user, available, asset, equivalent, bonus,
        )
        return available, max(0, available - equivalent), True
