"""
ledger.py - Token custody ledger

One Ledger holds the balance of every token (collateral assets and the
pegged unit) in every wallet:

    balances[wallet][symbol] -> int    (base units)

Token contracts in tokens.py are thin views over it; the engine moves
value only through them. Issuance and minting draw from SYSTEM_WALLET and
burning returns to it, so for every token the balances over all wallets
sum to zero and the supply is the system wallet's deficit.

Key responsibilities:
    - Implements the LedgerView protocol for read-only access
    - Applies each token call atomically (every move and state change, or none)
    - Refuses overdrafts, zero-address moves and stale contract state
    - Keeps an append-only log of applied calls
    - checkpoint()/rollback() so a failed engine operation leaves no trace
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Set
import logging

from .core import (
    PendingTransaction, Transaction, Unit, UnitState, ExecuteResult,
    SYSTEM_WALLET,
    LedgerError, TransferRuleViolation, UnitNotRegistered, WalletNotRegistered,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerCheckpoint:
    """Ledger state captured by Ledger.checkpoint()."""
    balances: Dict[str, Dict[str, int]]
    units: Dict[str, Unit]
    log_length: int


class Ledger:
    """
    Double-entry token ledger.

    Thread Safety:
        Not thread-safe. The engine serializes access with its guard.

    Example:
        ledger = Ledger("chain")
        ledger.register_unit(token("WETH", "Wrapped Ether"))
        ledger.register_wallet("alice")

        tx = build_transaction(ledger, "WETH", "ISSUE", SYSTEM_WALLET, [
            Move("WETH", SYSTEM_WALLET, "alice", 10 ** 18),
        ])
        result = ledger.execute(tx)
    """

    def __init__(
        self,
        name: str,
        initial_time: Optional[datetime] = None,
        test_mode: bool = False
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            initial_time: Starting time for the ledger (default: 1970-01-01)
            test_mode: Allow set_balance() calls (default: False)
        """
        self.name = name
        self.balances: Dict[str, Dict[str, int]] = {SYSTEM_WALLET: {}}
        self.units: Dict[str, Unit] = {}
        self.transaction_log: List[Transaction] = []
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self._test_mode = test_mode

    def __repr__(self) -> str:
        return f"Ledger({self.name!r}, {len(self.units)} tokens, {len(self.balances)} wallets)"

    # ========================================================================
    # READS
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time of the ledger."""
        return self._current_time

    def get_balance(self, wallet_id: str, symbol: str) -> int:
        """
        Balance of ``symbol`` in ``wallet_id``, in base units.

        Raises:
            WalletNotRegistered: If wallet is not registered
            UnitNotRegistered: If the token is not registered
        """
        if wallet_id not in self.balances:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if symbol not in self.units:
            raise UnitNotRegistered(f"Unit {symbol} not registered")
        return self.balances[wallet_id].get(symbol, 0)

    def get_unit(self, symbol: str) -> Unit:
        if symbol not in self.units:
            raise UnitNotRegistered(f"Unit {symbol} not registered")
        return self.units[symbol]

    def get_unit_state(self, symbol: str) -> UnitState:
        """A copy of the token's contract state."""
        return self.get_unit(symbol).state

    def list_units(self) -> List[str]:
        return sorted(self.units)

    def list_wallets(self) -> Set[str]:
        return set(self.balances)

    def is_registered(self, wallet_id: str) -> bool:
        return wallet_id in self.balances

    def supply(self, symbol: str) -> int:
        """Amount of ``symbol`` issued or minted and not yet burned."""
        return -self.get_balance(SYSTEM_WALLET, symbol)

    def net_balance(self, symbol: str) -> int:
        """Sum of ``symbol`` over every wallet. Zero unless set_balance() was used."""
        self.get_unit(symbol)
        return sum(held.get(symbol, 0) for held in self.balances.values())

    def verify_double_entry(self) -> Dict[str, Any]:
        """
        Check that every token's balances net to zero.

        Returns:
            Dict with 'valid' and 'discrepancies', a list of
            {'unit': symbol, 'net': amount} for every token that does not.
        """
        discrepancies = []
        for symbol in self.list_units():
            net = self.net_balance(symbol)
            if net != 0:
                discrepancies.append({'unit': symbol, 'net': net})
        return {'valid': not discrepancies, 'discrepancies': discrepancies}

    # ========================================================================
    # TIME
    # ========================================================================

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the ledger's logical clock. Time only moves forward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # REGISTRATION
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Raises:
            ValueError: If wallet is already registered
        """
        if wallet_id in self.balances:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.balances[wallet_id] = {}
        return wallet_id

    def ensure_wallet(self, wallet_id: str) -> str:
        """Register a wallet if it is not registered yet."""
        if wallet_id not in self.balances:
            self.register_wallet(wallet_id)
        return wallet_id

    def register_unit(self, unit: Unit) -> None:
        """
        Raises:
            ValueError: If the symbol is already registered
        """
        if unit.symbol in self.units:
            raise ValueError(f"Unit {unit.symbol} already registered")
        self.units[unit.symbol] = unit
        logger.debug("Registered unit %s (%s) [%s]", unit.symbol, unit.name, unit.unit_type)

    def set_balance(self, wallet_id: str, symbol: str, amount: int) -> None:
        """
        Overwrite a balance directly. Test mode only.

        This bypasses double entry, so verify_double_entry() reports the
        token afterwards.

        Raises:
            LedgerError: If called when test_mode is False
        """
        if not self._test_mode:
            raise LedgerError(
                "set_balance() is disabled in production mode. "
                "Use build_transaction() and execute() to modify balances."
            )
        self.get_balance(wallet_id, symbol)
        self.balances[wallet_id][symbol] = int(amount)

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def execute(self, pending: PendingTransaction) -> ExecuteResult:
        """
        Apply a token call atomically.

        Returns:
            ExecuteResult.APPLIED if every move and state change took effect
                (an empty call applies trivially and is not logged)
            ExecuteResult.REJECTED if validation failed; nothing changed
        """
        if pending.is_empty():
            return ExecuteResult.APPLIED

        reason = self._rejection_reason(pending)
        if reason:
            logger.info("REJECTED %r: %s", pending, reason)
            return ExecuteResult.REJECTED

        for move in pending.moves:
            source = self.balances[move.sender]
            dest = self.balances[move.recipient]
            source[move.symbol] = source.get(move.symbol, 0) - move.amount
            dest[move.symbol] = dest.get(move.symbol, 0) + move.amount
        for sc in pending.state_changes:
            self.units[sc.unit] = self.units[sc.unit].with_state(sc.new_state)

        tx = Transaction(
            sequence=len(self.transaction_log),
            symbol=pending.symbol,
            event=pending.event,
            caller=pending.caller,
            moves=pending.moves,
            state_changes=pending.state_changes,
            executed_at=self._current_time,
        )
        self.transaction_log.append(tx)
        logger.debug("APPLIED %r", tx)
        return ExecuteResult.APPLIED

    def _rejection_reason(self, pending: PendingTransaction) -> Optional[str]:
        """
        Why ``pending`` cannot be applied, or None if it can.

        Checks, in order: the call is not from the future, every token and
        wallet is registered, transfer rules pass, state changes were built
        against the current state, and no wallet but SYSTEM_WALLET ends
        negative once all moves are netted.
        """
        if pending.timestamp > self._current_time:
            return "future timestamp"

        net: Dict[tuple, int] = {}
        for move in pending.moves:
            unit = self.units.get(move.symbol)
            if unit is None:
                return f"unit not registered: {move.symbol}"
            for wallet in (move.sender, move.recipient):
                if wallet not in self.balances:
                    return f"wallet not registered: {wallet}"
            if unit.transfer_rule:
                try:
                    unit.transfer_rule(self, move)
                except TransferRuleViolation as e:
                    return str(e)
            net[move.sender, move.symbol] = net.get((move.sender, move.symbol), 0) - move.amount
            net[move.recipient, move.symbol] = net.get((move.recipient, move.symbol), 0) + move.amount

        for sc in pending.state_changes:
            if sc.unit not in self.units:
                return f"unit not registered: {sc.unit}"
            if sc.old_state != self.units[sc.unit].state:
                return f"stale state for {sc.unit}"

        for (wallet, symbol), delta in net.items():
            if wallet == SYSTEM_WALLET:
                continue
            proposed = self.balances[wallet].get(symbol, 0) + delta
            if proposed < 0:
                return f"{wallet} {symbol}: balance would be {proposed}"

        return None

    # ========================================================================
    # CHECKPOINTS
    # ========================================================================

    def checkpoint(self) -> LedgerCheckpoint:
        """Capture balances, contract state and the log position."""
        return LedgerCheckpoint(
            balances={wallet: dict(held) for wallet, held in self.balances.items()},
            units=dict(self.units),
            log_length=len(self.transaction_log),
        )

    def rollback(self, checkpoint: LedgerCheckpoint) -> None:
        """
        Restore the state captured by checkpoint().

        Wallets registered since are dropped and the log is cut back. The
        ledger object keeps its identity, so token contracts holding a
        reference to it see the restored balances. The clock is not rewound.
        """
        self.balances = {wallet: dict(held) for wallet, held in checkpoint.balances.items()}
        self.units = dict(checkpoint.units)
        del self.transaction_log[checkpoint.log_length:]
        logger.debug("Ledger %s rolled back to %d transactions", self.name, checkpoint.log_length)
