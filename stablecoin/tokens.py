"""
tokens.py - Fungible token contracts over the custody ledger

The engine talks to tokens through two protocols:
- Token: the standard fungible-token surface (balances, allowances, transfers)
- MintableToken: Token plus owner-only mint and burn, for the pegged unit

LedgerToken and StablecoinToken implement them on top of a shared Ledger,
so every transfer, approval, mint and burn is an atomic, logged ledger
transaction. Python has no implicit message sender, so every mutating call
names the acting account explicitly.

Failures follow token conventions: a transfer that cannot be applied returns
False, while calls that break a token rule (non-owner mint, zero amount)
raise a TokenError. require_success() folds both into one engine error.
"""

from __future__ import annotations
import logging
from typing import Callable, List, Optional, Protocol, Type, runtime_checkable

from .core import (
    Move, UnitStateChange, ExecuteResult,
    build_transaction, token, stablecoin,
    SYSTEM_WALLET, ZERO_ADDRESS, TOKEN_DECIMALS,
    LedgerError, NotOwner, MustBeMoreThanZero, NotZeroAddress,
    BurnAmountExceedsBalance, CollaboratorError, EngineError, TransferFailed,
)
from .ledger import Ledger

logger = logging.getLogger(__name__)


@runtime_checkable
class Token(Protocol):
    """Standard fungible-token interface used for collateral movement."""

    symbol: str

    def balance_of(self, account: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...

    def transfer(self, sender: str, to: str, amount: int) -> bool: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool: ...

    def total_supply(self) -> int: ...


@runtime_checkable
class MintableToken(Token, Protocol):
    """The pegged unit: a Token whose owner can mint and burn."""

    def mint(self, caller: str, to: str, amount: int) -> bool: ...

    def burn(self, caller: str, amount: int) -> None: ...


def require_success(
    call: Callable[[], Optional[bool]],
    error: Type[CollaboratorError] = TransferFailed,
    description: str = "token call failed",
) -> None:
    """
    Run a token call and raise ``error`` unless it succeeded.

    A False return and a raised exception are treated the same way.
    EngineErrors (a re-entrant call) keep their own kind.
    A None return (burn) counts as success.
    """
    try:
        ok = call()
    except EngineError:
        raise
    except Exception as err:
        raise error(f"{description}: {err}") from err
    if ok is False:
        raise error(description)


class LedgerToken:
    """
    ERC20-style token whose balances live in a Ledger.

    Allowances are kept in the unit state so that approvals are logged and
    rolled back together with balances.

    Example:
        ledger = Ledger("chain")
        weth = LedgerToken(ledger, "WETH", "Wrapped Ether")
        weth.issue("alice", 10 * 10 ** 18)
        weth.approve("alice", "dsc_engine", 10 * 10 ** 18)
    """

    def __init__(
        self,
        ledger: Ledger,
        symbol: str,
        name: Optional[str] = None,
        decimals: int = TOKEN_DECIMALS,
    ):
        self.ledger = ledger
        self.symbol = symbol
        if symbol not in ledger.units:
            ledger.register_unit(token(symbol, name or symbol, decimals))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol!r}, ledger={self.ledger.name!r})"

    @property
    def name(self) -> str:
        return self.ledger.get_unit(self.symbol).name

    @property
    def decimals(self) -> int:
        return self.ledger.get_unit_state(self.symbol).get('decimals', TOKEN_DECIMALS)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        if not self.ledger.is_registered(account):
            return 0
        return self.ledger.get_balance(account, self.symbol)

    def total_supply(self) -> int:
        return self.ledger.supply(self.symbol)

    def allowance(self, owner: str, spender: str) -> int:
        allowances = self.ledger.get_unit_state(self.symbol).get('allowances', {})
        return allowances.get(owner, {}).get(spender, 0)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set ``spender``'s allowance over ``owner``'s balance to ``amount``."""
        _check_amount(amount)
        if spender == ZERO_ADDRESS:
            raise NotZeroAddress("Cannot approve the zero address")
        old_state = self.ledger.get_unit_state(self.symbol)
        new_state = _with_allowance(old_state, owner, spender, amount)
        return self._execute("APPROVE", owner, state_changes=[UnitStateChange(self.symbol, old_state, new_state)])

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``to``. False if it cannot be applied."""
        _check_amount(amount)
        if amount == 0:
            return True
        if sender == to:
            return self.balance_of(sender) >= amount
        self.ledger.ensure_wallet(sender)
        self.ledger.ensure_wallet(to)
        return self._execute("TRANSFER", sender, [Move(self.symbol, sender, to, amount)])

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """
        Move ``amount`` from ``owner`` to ``to`` on ``spender``'s allowance.

        The balance move and the allowance decrement are one ledger
        transaction. Returns False when either the allowance or the balance
        is insufficient.
        """
        _check_amount(amount)
        if amount == 0:
            return True
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            logger.info("%s: allowance %d of %s for %s below %d",
                        self.symbol, allowed, owner, spender, amount)
            return False
        self.ledger.ensure_wallet(owner)
        self.ledger.ensure_wallet(to)
        old_state = self.ledger.get_unit_state(self.symbol)
        new_state = _with_allowance(old_state, owner, spender, allowed - amount)
        if owner == to:
            # Nothing moves, but the allowance is still spent
            if self.balance_of(owner) < amount:
                return False
            moves = []
        else:
            moves = [Move(self.symbol, owner, to, amount)]
        return self._execute("TRANSFER_FROM", spender, moves,
                             [UnitStateChange(self.symbol, old_state, new_state)])

    def issue(self, to: str, amount: int) -> bool:
        """Create ``amount`` new tokens for ``to`` out of the system wallet."""
        _check_amount(amount)
        if amount == 0:
            return True
        self.ledger.ensure_wallet(to)
        return self._execute("ISSUE", SYSTEM_WALLET, [Move(self.symbol, SYSTEM_WALLET, to, amount)])

    def _execute(
        self,
        event: str,
        caller: str,
        moves: Optional[List[Move]] = None,
        state_changes: Optional[List[UnitStateChange]] = None,
    ) -> bool:
        pending = build_transaction(self.ledger, self.symbol, event, caller, moves, state_changes)
        return self.ledger.execute(pending) == ExecuteResult.APPLIED


class StablecoinToken(LedgerToken):
    """
    The pegged unit. Mint and burn are restricted to the owner, which is
    the engine once ownership has been transferred to it.

    Example:
        dsc = StablecoinToken(ledger, owner="deployer")
        engine = StablecoinEngine([weth], [eth_feed], dsc)
        dsc.transfer_ownership("deployer", engine.address)
    """

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        symbol: str = "DSC",
        name: str = "Decentralized Stable Coin",
    ):
        if symbol not in ledger.units:
            ledger.register_unit(stablecoin(symbol, name, owner))
        super().__init__(ledger, symbol, name)

    @property
    def owner(self) -> str:
        return self.ledger.get_unit_state(self.symbol)['owner']

    def _only_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise NotOwner(f"{caller} is not the owner of {self.symbol}")

    def mint(self, caller: str, to: str, amount: int) -> bool:
        """
        Mint ``amount`` to ``to``.

        Raises:
            NotOwner: caller is not the owner
            NotZeroAddress: ``to`` is the zero address
            MustBeMoreThanZero: amount <= 0
        """
        self._only_owner(caller)
        if to == ZERO_ADDRESS:
            raise NotZeroAddress(f"{self.symbol}: cannot mint to the zero address")
        if amount <= 0:
            raise MustBeMoreThanZero(f"{self.symbol}: mint amount must be more than zero")
        self.ledger.ensure_wallet(to)
        return self._execute("MINT", caller, [Move(self.symbol, SYSTEM_WALLET, to, amount)])

    def burn(self, caller: str, amount: int) -> None:
        """
        Burn ``amount`` from the owner's own balance.

        Raises:
            NotOwner: caller is not the owner
            MustBeMoreThanZero: amount <= 0
            BurnAmountExceedsBalance: the owner holds less than ``amount``
        """
        self._only_owner(caller)
        if amount <= 0:
            raise MustBeMoreThanZero(f"{self.symbol}: burn amount must be more than zero")
        if self.balance_of(caller) < amount:
            raise BurnAmountExceedsBalance(
                f"{self.symbol}: burn of {amount} exceeds balance {self.balance_of(caller)}"
            )
        if not self._execute("BURN", caller, [Move(self.symbol, caller, SYSTEM_WALLET, amount)]):
            raise LedgerError(f"{self.symbol}: burn of {amount} rejected by ledger")

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._only_owner(caller)
        if new_owner == ZERO_ADDRESS:
            raise NotZeroAddress(f"{self.symbol}: new owner is the zero address")
        old_state = self.ledger.get_unit_state(self.symbol)
        new_state = {**old_state, 'owner': new_owner}
        self._execute("TRANSFER_OWNERSHIP", caller, state_changes=[UnitStateChange(self.symbol, old_state, new_state)])
        logger.info("%s ownership transferred from %s to %s", self.symbol, caller, new_owner)


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"Token amounts are integers in base units, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"Token amount cannot be negative: {amount}")


def _with_allowance(state: dict, owner: str, spender: str, amount: int) -> dict:
    allowances = {o: dict(s) for o, s in state.get('allowances', {}).items()}
    allowances.setdefault(owner, {})[spender] = amount
    return {**state, 'allowances': allowances}
