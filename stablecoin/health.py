"""
health.py - Solvency ratio of an account

    health_factor = (collateral_usd * threshold // threshold_precision) * precision // debt

An account with no debt gets MAX_HEALTH_FACTOR without any division, so it
can never be liquidated and never blocks minting on its own.
"""

from __future__ import annotations
from dataclasses import dataclass

from .accounts import CollateralLedger, DebtLedger
from .config import EngineConfig
from .core import MAX_HEALTH_FACTOR, HealthFactorBroken


@dataclass(frozen=True, slots=True)
class AccountInformation:
    total_minted: int
    collateral_value_usd: int


def calculate_health_factor(total_minted: int, collateral_value_usd: int, config: EngineConfig) -> int:
    """Health factor for the given debt and collateral value (fixed point)."""
    if total_minted == 0:
        return MAX_HEALTH_FACTOR
    adjusted = collateral_value_usd * config.liquidation_threshold // config.liquidation_precision
    return adjusted * config.precision // total_minted


class HealthFactorCalculator:
    """Reads both ledgers and turns them into a health factor."""

    def __init__(self, collateral: CollateralLedger, debt: DebtLedger, config: EngineConfig):
        self.collateral = collateral
        self.debt = debt
        self.config = config

    def account_information(self, user: str) -> AccountInformation:
        return AccountInformation(
            total_minted=self.debt.debt_of(user),
            collateral_value_usd=self.collateral.total_collateral_usd(user),
        )

    def health_factor(self, user: str) -> int:
        debt = self.debt.debt_of(user)
        if debt == 0:
            # Skips the oracle entirely.
            return MAX_HEALTH_FACTOR
        return calculate_health_factor(debt, self.collateral.total_collateral_usd(user), self.config)

    def is_liquidatable(self, user: str) -> bool:
        return self.health_factor(user) < self.config.min_health_factor

    def assert_healthy(self, user: str) -> None:
        """
        Raises:
            HealthFactorBroken: health factor is below min_health_factor
        """
        health_factor = self.health_factor(user)
        if health_factor < self.config.min_health_factor:
            raise HealthFactorBroken(health_factor)
