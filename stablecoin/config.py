"""Engine parameters, fixed for the lifetime of an engine."""

from __future__ import annotations
from dataclasses import dataclass

from .core import (
    PRECISION, ADDITIONAL_FEED_PRECISION,
    LIQUIDATION_THRESHOLD, LIQUIDATION_PRECISION, LIQUIDATION_BONUS,
    MIN_HEALTH_FACTOR, InvalidConfig,
)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """
    Solvency and valuation parameters.

    Attributes:
        liquidation_threshold: Share of collateral value (out of
            liquidation_precision) that counts toward solvency. 50 means a
            position must be 200% overcollateralized.
        liquidation_precision: Denominator for threshold and bonus.
        liquidation_bonus: Extra collateral, out of liquidation_precision,
            paid to a liquidator on top of the debt it covers.
        min_health_factor: Health factor below which an account can be
            liquidated, in fixed point.
        precision: Fixed-point unit (1e18).
        additional_feed_precision: Scales an 8-decimal feed answer to 18.
    """
    liquidation_threshold: int = LIQUIDATION_THRESHOLD
    liquidation_precision: int = LIQUIDATION_PRECISION
    liquidation_bonus: int = LIQUIDATION_BONUS
    min_health_factor: int = MIN_HEALTH_FACTOR
    precision: int = PRECISION
    additional_feed_precision: int = ADDITIONAL_FEED_PRECISION

    def __post_init__(self):
        for name in ("liquidation_threshold", "liquidation_precision", "liquidation_bonus",
                     "min_health_factor", "precision", "additional_feed_precision"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidConfig(f"{name} must be an int, got {type(value).__name__}")
        if self.liquidation_precision <= 0:
            raise InvalidConfig("liquidation_precision must be positive")
        if not 0 < self.liquidation_threshold <= self.liquidation_precision:
            raise InvalidConfig(
                f"liquidation_threshold must be in (0, {self.liquidation_precision}], "
                f"got {self.liquidation_threshold}"
            )
        if self.liquidation_bonus < 0:
            raise InvalidConfig("liquidation_bonus cannot be negative")
        if self.min_health_factor <= 0:
            raise InvalidConfig("min_health_factor must be positive")
        if self.precision <= 0 or self.additional_feed_precision <= 0:
            raise InvalidConfig("precision values must be positive")

    @property
    def overcollateralization(self) -> float:
        """Required collateral/debt ratio, e.g. 2.0 for a threshold of 50."""
        return self.liquidation_precision / self.liquidation_threshold
