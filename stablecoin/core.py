"""
Core types and pure functions for the stablecoin engine.

This module provides the foundational data structures shared by every layer:
1. Fixed-point constants: PRECISION, feed scaling, liquidation parameters
2. Protocols: LedgerView for read-only access to the token ledger
3. Exceptions: the token-ledger hierarchy and the engine taxonomy
4. Token calls as data: Move, UnitStateChange, PendingTransaction, Transaction
5. Token definitions: Unit, the zero-address transfer rule, unit factories

Every amount, in the engine and in the token ledger alike, is a plain
Python int in base units (18-decimal fixed point for tokens and USD).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import copy
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Issuance and minting draw from this wallet, burning returns to it. It is
# the only wallet allowed a negative balance.
SYSTEM_WALLET = "system"

# The null account. Tokens refuse to mint to it or move value through it.
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

UNIT_TYPE_TOKEN = "TOKEN"
UNIT_TYPE_STABLECOIN = "STABLECOIN"

TOKEN_DECIMALS = 18

# Fixed-point scaling. Feeds answer with 8 decimals; everything else is 18.
PRECISION = 10 ** 18
FEED_PRECISION = 10 ** 8
ADDITIONAL_FEED_PRECISION = 10 ** 10

# 50 / 100: only half of the collateral value counts, i.e. 200% overcollateralized.
LIQUIDATION_THRESHOLD = 50
LIQUIDATION_PRECISION = 100
LIQUIDATION_BONUS = 10
MIN_HEALTH_FACTOR = PRECISION

# Returned for accounts without debt; never compared against by division.
MAX_HEALTH_FACTOR = 2 ** 256 - 1

# Token contract state: decimals, allowances and, for the pegged unit, owner.
UnitState = Dict[str, Any]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to the token ledger.

    Transfer rules and clock-driven price feeds accept a LedgerView to
    declare that they never move balances.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time of the ledger."""
        ...

    def get_balance(self, wallet_id: str, symbol: str) -> int:
        """Return ``wallet_id``'s balance of ``symbol`` in base units."""
        ...

    def get_unit_state(self, symbol: str) -> UnitState:
        """Return a copy of the token's contract state."""
        ...


class ExecuteResult(Enum):
    """
    Outcome of applying a token call to the ledger.

    APPLIED: Every move and state change took effect.
    REJECTED: Validation failed and nothing changed.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


# ============================================================================
# LEDGER EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all token-ledger errors."""
    pass


class TransferRuleViolation(LedgerError):
    """Raised when a move violates the token's transfer rule."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when operating on a token that has not been registered."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when operating on a wallet that has not been registered."""
    pass


class TokenError(LedgerError):
    """Base class for token contract reverts."""
    pass


class NotOwner(TokenError):
    """Raised when a non-owner calls an owner-only token function."""
    pass


class MustBeMoreThanZero(TokenError):
    pass


class NotZeroAddress(TokenError):
    pass


class BurnAmountExceedsBalance(TokenError):
    pass


# ============================================================================
# ENGINE EXCEPTIONS
# ============================================================================

class EngineError(Exception):
    """Base exception for the collateral engine."""
    pass


class ValidationError(EngineError):
    """Invalid input detected before any state was touched."""
    pass


class ZeroAmount(ValidationError):
    """Raised when an amount must be strictly positive."""
    pass


class AssetNotAllowed(ValidationError):
    """Raised when an asset is not in the engine's collateral set."""

    def __init__(self, asset: str):
        super().__init__(f"Asset {asset!r} is not allowed as collateral")
        self.asset = asset


class ConfigLengthMismatch(ValidationError):
    """Raised when collateral tokens and price feeds differ in length."""
    pass


class InvalidConfig(ValidationError):
    """Raised when engine parameters or collaborators are unusable."""
    pass


class SolvencyError(EngineError):
    """A solvency rule failed after a tentative mutation."""
    pass


class HealthFactorBroken(SolvencyError):
    """Raised when an account's health factor is below the minimum."""

    def __init__(self, health_factor: int):
        super().__init__(f"Health factor broken: {health_factor}")
        self.health_factor = health_factor


class HealthFactorOk(SolvencyError):
    """Raised when trying to liquidate a healthy account."""
    pass


class HealthFactorNotImproved(SolvencyError):
    """Raised when a liquidation leaves the target worse off than before."""

    def __init__(self, starting: int, ending: int):
        super().__init__(f"Health factor not improved: {starting} -> {ending}")
        self.starting = starting
        self.ending = ending


class CollaboratorError(EngineError):
    """An external token or price feed failed."""
    pass


class TransferFailed(CollaboratorError):
    pass


class MintFailed(CollaboratorError):
    pass


class OracleUnavailable(CollaboratorError):
    """Raised when a price cannot be obtained or is not usable."""
    pass


class DivideByZero(OracleUnavailable):
    """Raised when converting USD to tokens against a zero price."""
    pass


class FatalInvariantViolation(EngineError):
    """A caller broke a contract the engine relies on. Not a business error."""
    pass


class LedgerUnderflow(FatalInvariantViolation):
    """Raised when redeeming or burning more than an account records."""
    pass


class ReentrantCall(EngineError):
    """Raised when a guarded entry point is entered while already held."""
    pass


# ============================================================================
# TOKEN CALLS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    One transfer of a token between two wallets.

    Attributes:
        symbol: Token moved (e.g. "WETH", "DSC").
        sender: Wallet debited; SYSTEM_WALLET when minting or issuing.
        recipient: Wallet credited; SYSTEM_WALLET when burning.
        amount: Base units, a positive int.
    """
    symbol: str
    sender: str
    recipient: str
    amount: int

    def __post_init__(self):
        for name in ("symbol", "sender", "recipient"):
            value = getattr(self, name)
            if not value or not value.strip():
                raise ValueError(f"Move {name} cannot be empty")
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise ValueError(f"Move amount must be an int of base units, got {type(self.amount).__name__}")
        if self.amount <= 0:
            raise ValueError(f"Move amount must be positive, got {self.amount}")
        if self.sender == self.recipient:
            raise ValueError("Sender and recipient must be different")

    def __repr__(self) -> str:
        return f"Move({self.amount} {self.symbol}: {self.sender}→{self.recipient})"


@dataclass(frozen=True, slots=True)
class UnitStateChange:
    """
    Replacement of a token's contract state.

    Allowances and ownership live in the state, so approvals and ownership
    transfers are logged and rolled back like balance moves. ``old_state``
    is the state the call was built against; the ledger refuses the change
    if the token has moved on since.
    """
    unit: str
    old_state: UnitState
    new_state: UnitState

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """Map each field that differs to its (old_value, new_value) pair."""
        keys = sorted(set(self.old_state) | set(self.new_state))
        return {
            key: (self.old_state.get(key), self.new_state.get(key))
            for key in keys
            if self.old_state.get(key) != self.new_state.get(key)
        }


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A token call before it is applied.

    Attributes:
        symbol: Token contract that made the call
        event: What the call does ("TRANSFER", "APPROVE", "MINT", ...)
        caller: Account on whose behalf the call runs
        timestamp: Ledger time at which the call was built
        moves: Balance transfers
        state_changes: Contract state updates (allowances, owner)
    """
    symbol: str
    event: str
    caller: str
    timestamp: datetime
    moves: Tuple[Move, ...] = ()
    state_changes: Tuple[UnitStateChange, ...] = ()

    def is_empty(self) -> bool:
        return not self.moves and not self.state_changes

    def __repr__(self) -> str:
        return f"PendingTransaction({self.symbol}.{self.event} by {self.caller}, {len(self.moves)} moves)"


def build_transaction(
    view: LedgerView,
    symbol: str,
    event: str,
    caller: str,
    moves: Optional[List[Move]] = None,
    state_changes: Optional[List[UnitStateChange]] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction stamped with the ledger's current time.

    State changes are deep-copied so later mutation of the caller's dicts
    cannot alter the recorded call.

    Example:
        tx = build_transaction(ledger, "WETH", "TRANSFER", "alice", [
            Move("WETH", "alice", "dsc_engine", 10 ** 18),
        ])
        ledger.execute(tx)
    """
    copied = tuple(
        UnitStateChange(sc.unit, copy.deepcopy(sc.old_state), copy.deepcopy(sc.new_state))
        for sc in state_changes or ()
    )
    return PendingTransaction(
        symbol=symbol,
        event=event,
        caller=caller,
        timestamp=view.current_time,
        moves=tuple(moves or ()),
        state_changes=copied,
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An applied token call, as kept in the ledger's log.

    Attributes:
        sequence: Position in the log, from 0
        symbol, event, caller: Copied from the PendingTransaction
        moves, state_changes: What was applied
        executed_at: Ledger time at execution
    """
    sequence: int
    symbol: str
    event: str
    caller: str
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    executed_at: datetime

    def __repr__(self) -> str:
        lines = [f"#{self.sequence} {self.symbol}.{self.event} by {self.caller} at {self.executed_at}"]
        for move in self.moves:
            lines.append(f"  {move.amount} {move.symbol}: {move.sender} → {move.recipient}")
        for sc in self.state_changes:
            for name, (old_val, new_val) in sc.changed_fields().items():
                lines.append(f"  [{sc.unit}] {name}: {old_val!r} → {new_val!r}")
        return "\n".join(lines)


# ============================================================================
# TOKEN DEFINITIONS
# ============================================================================

# Transfer rules validate moves and raise TransferRuleViolation if invalid.
TransferRule = Callable[[LedgerView, Move], None]


def _freeze_state(state: Optional[UnitState]) -> Tuple[Tuple[str, Any], ...]:
    """Convert a state dict to a tuple of (key, value) pairs sorted by key."""
    if not state:
        return ()
    return tuple(sorted(copy.deepcopy(state).items()))


@dataclass(frozen=True, slots=True)
class Unit:
    """
    A token registered in the ledger.

    Attributes:
        symbol: Short identifier (e.g. "WETH", "DSC").
        name: Human-readable name.
        unit_type: TOKEN for collateral, STABLECOIN for the pegged unit.
        transfer_rule: Optional check run against every move of this token.
        _frozen_state: Contract state (decimals, allowances, owner).
    """
    symbol: str
    name: str
    unit_type: str
    transfer_rule: Optional[TransferRule] = None
    _frozen_state: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    @property
    def state(self) -> UnitState:
        """Return the token's state as a new dict on every call."""
        return copy.deepcopy(dict(self._frozen_state))

    def with_state(self, state: UnitState) -> Unit:
        return Unit(self.symbol, self.name, self.unit_type, self.transfer_rule, _freeze_state(state))


def zero_address_rule(view: LedgerView, move: Move) -> None:
    """
    Refuse moves into or out of the zero address.

    Raises:
        TransferRuleViolation: If either side of the move is ZERO_ADDRESS.
    """
    if move.sender == ZERO_ADDRESS:
        raise TransferRuleViolation(f"{move.symbol}: transfer from the zero address")
    if move.recipient == ZERO_ADDRESS:
        raise TransferRuleViolation(f"{move.symbol}: transfer to the zero address")


def token(symbol: str, name: str, decimals: int = TOKEN_DECIMALS) -> Unit:
    """Create a plain fungible token (collateral such as WETH or WBTC)."""
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_TOKEN,
        transfer_rule=zero_address_rule,
        _frozen_state=_freeze_state({'decimals': decimals, 'allowances': {}}),
    )


def stablecoin(symbol: str, name: str, owner: str) -> Unit:
    """
    Create the pegged unit. Only ``owner`` may mint and burn it.

    Args:
        symbol: Token symbol (e.g. "DSC").
        name: Full name (e.g. "Decentralized Stable Coin").
        owner: Wallet allowed to mint and burn.
    """
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_STABLECOIN,
        transfer_rule=zero_address_rule,
        _frozen_state=_freeze_state({
            'decimals': TOKEN_DECIMALS,
            'owner': owner,
            'allowances': {},
        }),
    )
