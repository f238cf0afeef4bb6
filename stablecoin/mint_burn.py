"""
mint_burn.py - Issuing and retiring the pegged unit

Minting records the debt first and checks solvency against the post-mint
state; only then is the token contract asked to mint. Burning retires the
debt, pulls the DSC into custody and burns it there.

Neither method undoes its own partial effects: both run inside the
engine's transaction boundary, which restores every ledger if anything
raises.
"""

from __future__ import annotations
import logging

from .accounts import DebtLedger
from .core import ZeroAmount, MintFailed, TransferFailed
from .health import HealthFactorCalculator
from .tokens import MintableToken, require_success

logger = logging.getLogger(__name__)


class MintBurnController:
    """
    Args:
        dsc: The pegged token; ``custodian`` must be its owner.
        debt: Debt ledger to update.
        health: Solvency checks for minting.
        custodian: The engine's wallet.
    """

    def __init__(self, dsc: MintableToken, debt: DebtLedger, health: HealthFactorCalculator, custodian: str):
        self.dsc = dsc
        self.debt = debt
        self.health = health
        self.custodian = custodian

    def mint(self, user: str, amount: int) -> None:
        """
        Raises:
            ZeroAmount: amount <= 0
            HealthFactorBroken: the new debt would leave ``user`` undercollateralized
            MintFailed: the token refused to mint
        """
        if amount <= 0:
            raise ZeroAmount("Mint amount must be more than zero")
        self.debt.increase(user, amount)
        self.health.assert_healthy(user)
        require_success(
            lambda: self.dsc.mint(self.custodian, user, amount),
            MintFailed,
            f"Minting {amount} {self.dsc.symbol} to {user}",
        )
        logger.debug("Minted %d %s to %s", amount, self.dsc.symbol, user)

    def burn(self, amount: int, on_behalf_of: str, payer: str) -> None:
        """
        Retire ``amount`` of ``on_behalf_of``'s debt with DSC paid by ``payer``.

        No solvency check here; callers check afterwards when they need to.

        Raises:
            ZeroAmount: amount <= 0
            LedgerUnderflow: amount exceeds the recorded debt
            TransferFailed: the DSC could not be pulled from ``payer`` or burned
        """
        if amount <= 0:
            raise ZeroAmount("Burn amount must be more than zero")
        self.debt.decrease(on_behalf_of, amount)
        require_success(
            lambda: self.dsc.transfer_from(self.custodian, payer, self.custodian, amount),
            TransferFailed,
            f"Pulling {amount} {self.dsc.symbol} from {payer}",
        )
        require_success(
            lambda: self.dsc.burn(self.custodian, amount),
            TransferFailed,
            f"Burning {amount} {self.dsc.symbol}",
        )
        logger.debug("Burned %d %s for %s paid by %s", amount, self.dsc.symbol, on_behalf_of, payer)
