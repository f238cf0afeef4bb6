"""
accounts.py - Per-user collateral and debt bookkeeping

CollateralLedger and DebtLedger jointly own the authoritative account state:

    deposited[user][asset] -> int     (base units, 18 decimals)
    minted[user]           -> int     (DSC base units)

Accounts appear on first deposit or mint and are never removed; a zeroed
account reads the same as one that was never used. Both ledgers expose
snapshot()/restore() so the engine can discard every mutation of a failed
operation.

Amounts are validated here only where the operation itself has a
precondition (deposit > 0). Removing more than an account records is a
LedgerUnderflow: callers are expected to make it unreachable.
"""

from __future__ import annotations
from dataclasses import dataclass
import copy
import logging
from typing import Dict, List, Mapping, Tuple, Union

from .core import ZeroAmount, AssetNotAllowed, LedgerUnderflow, TransferFailed
from .oracle import PriceOracleAdapter
from .tokens import Token, require_success

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CollateralDeposited:
    user: str
    asset: str
    amount: int


@dataclass(frozen=True, slots=True)
class CollateralRedeemed:
    """Collateral left the engine. ``redeemed_from != redeemed_to`` for liquidations."""
    redeemed_from: str
    redeemed_to: str
    asset: str
    amount: int

    @property
    def is_liquidation(self) -> bool:
        return self.redeemed_from != self.redeemed_to


CollateralEvent = Union[CollateralDeposited, CollateralRedeemed]


class CollateralLedger:
    """
    Deposited collateral per user and asset, valued through the oracle.

    Args:
        oracle: Valuation layer; its asset set is the allowed collateral set.
        tokens: Asset id -> token contract used to move the collateral.
        custodian: Wallet holding deposited collateral (the engine).
    """

    def __init__(self, oracle: PriceOracleAdapter, tokens: Mapping[str, Token], custodian: str):
        self.oracle = oracle
        self.tokens: Dict[str, Token] = dict(tokens)
        self.custodian = custodian
        self._deposited: Dict[str, Dict[str, int]] = {}
        self.events: List[CollateralEvent] = []

    @property
    def assets(self) -> Tuple[str, ...]:
        return self.oracle.assets

    def is_allowed(self, asset: str) -> bool:
        return asset in self.tokens and self.oracle.has_feed(asset)

    def require_allowed(self, asset: str) -> None:
        if not self.is_allowed(asset):
            raise AssetNotAllowed(asset)

    def balance_of(self, user: str, asset: str) -> int:
        return self._deposited.get(user, {}).get(asset, 0)

    def users(self) -> List[str]:
        return sorted(self._deposited)

    def deposit(self, user: str, asset: str, amount: int) -> None:
        """
        Record a deposit and pull the tokens into custody.

        Raises:
            ZeroAmount: amount <= 0
            AssetNotAllowed: asset is not collateral
            TransferFailed: the token refused the pull; nothing is recorded
        """
        if amount <= 0:
            raise ZeroAmount("Deposit amount must be more than zero")
        self.require_allowed(asset)

        self._credit(user, asset, amount)
        self.events.append(CollateralDeposited(user, asset, amount))
        try:
            require_success(
                lambda: self.tokens[asset].transfer_from(self.custodian, user, self.custodian, amount),
                TransferFailed,
                f"Pulling {amount} {asset} from {user}",
            )
        except TransferFailed:
            self.events.pop()
            self._debit(user, asset, amount)
            raise
        logger.debug("Deposited %d %s for %s", amount, asset, user)

    def redeem(self, asset: str, amount: int, from_: str, to: str) -> None:
        """
        Remove ``amount`` of ``asset`` from ``from_``'s deposit and send it to ``to``.

        Raises:
            LedgerUnderflow: ``from_`` has less than ``amount`` deposited
            TransferFailed: the token refused the transfer; nothing is recorded
        """
        self._debit(from_, asset, amount)
        self.events.append(CollateralRedeemed(from_, to, asset, amount))
        try:
            require_success(
                lambda: self.tokens[asset].transfer(self.custodian, to, amount),
                TransferFailed,
                f"Sending {amount} {asset} to {to}",
            )
        except TransferFailed:
            self.events.pop()
            self._credit(from_, asset, amount)
            raise
        logger.debug("Redeemed %d %s from %s to %s", amount, asset, from_, to)

    def total_collateral_usd(self, user: str) -> int:
        """Sum of usd_value over every allowed asset for ``user``."""
        return sum(
            self.oracle.usd_value(asset, self.balance_of(user, asset))
            for asset in self.assets
        )

    def _credit(self, user: str, asset: str, amount: int) -> None:
        account = self._deposited.setdefault(user, {})
        account[asset] = account.get(asset, 0) + amount

    def _debit(self, user: str, asset: str, amount: int) -> None:
        held = self.balance_of(user, asset)
        if amount > held:
            raise LedgerUnderflow(f"{user} has {held} {asset} deposited, cannot remove {amount}")
        self._deposited.setdefault(user, {})[asset] = held - amount

    def snapshot(self) -> Tuple[Dict[str, Dict[str, int]], List[CollateralEvent]]:
        return copy.deepcopy(self._deposited), list(self.events)

    def restore(self, snapshot: Tuple[Dict[str, Dict[str, int]], List[CollateralEvent]]) -> None:
        deposited, events = snapshot
        self._deposited = copy.deepcopy(deposited)
        self.events = list(events)


class DebtLedger:
    """Minted DSC per user."""

    def __init__(self):
        self._minted: Dict[str, int] = {}

    def debt_of(self, user: str) -> int:
        return self._minted.get(user, 0)

    def total_debt(self) -> int:
        return sum(self._minted.values())

    def users(self) -> List[str]:
        return sorted(u for u, debt in self._minted.items() if debt > 0)

    def increase(self, user: str, amount: int) -> None:
        self._minted[user] = self.debt_of(user) + amount

    def decrease(self, user: str, amount: int) -> None:
        """
        Raises:
            LedgerUnderflow: amount exceeds the recorded debt
        """
        debt = self.debt_of(user)
        if amount > debt:
            raise LedgerUnderflow(f"{user} owes {debt}, cannot burn {amount}")
        self._minted[user] = debt - amount

    def snapshot(self) -> Dict[str, int]:
        return dict(self._minted)

    def restore(self, snapshot: Dict[str, int]) -> None:
        self._minted = dict(snapshot)
