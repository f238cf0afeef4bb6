"""
Tests for LedgerToken and StablecoinToken.

Tests:
- Balances, issuance and supply
- Transfers return False instead of raising when they cannot apply
- Allowances and transfer_from
- Owner-only mint and burn with token-level reverts
- require_success folds False returns and token errors into engine errors
"""

import pytest

from stablecoin import (
    LedgerToken, StablecoinToken, require_success, SYSTEM_WALLET, ZERO_ADDRESS,
    NotOwner, MustBeMoreThanZero, NotZeroAddress, BurnAmountExceedsBalance,
    TransferFailed, MintFailed, ReentrantCall,
)

from tests.helpers import DEPLOYER


class TestLedgerToken:

    def test_metadata(self, weth):
        assert weth.symbol == "WETH"
        assert weth.name == "Wrapped Ether"
        assert weth.decimals == 18

    def test_reuses_registered_unit(self, ledger, weth):
        again = LedgerToken(ledger, "WETH")
        weth.issue("alice", 5)
        assert again.balance_of("alice") == 5

    def test_unknown_account_has_zero_balance(self, weth):
        assert weth.balance_of("nobody") == 0

    def test_issue_and_supply(self, weth):
        weth.issue("alice", 10)
        weth.issue("bob", 5)
        assert weth.total_supply() == 15
        assert weth.ledger.net_balance("WETH") == 0

    def test_transfer(self, weth):
        weth.issue("alice", 10)
        assert weth.transfer("alice", "bob", 4)
        assert weth.balance_of("alice") == 6
        assert weth.balance_of("bob") == 4

    def test_repeated_identical_transfers_all_apply(self, weth):
        weth.issue("alice", 10)
        for _ in range(3):
            assert weth.transfer("alice", "bob", 2)
        assert weth.balance_of("bob") == 6

    def test_transfer_more_than_balance_returns_false(self, weth):
        weth.issue("alice", 10)
        assert weth.transfer("alice", "bob", 11) is False
        assert weth.balance_of("alice") == 10

    def test_transfer_to_zero_address_returns_false(self, weth):
        weth.issue("alice", 10)
        assert weth.transfer("alice", ZERO_ADDRESS, 1) is False

    def test_transfer_to_self(self, weth):
        weth.issue("alice", 10)
        assert weth.transfer("alice", "alice", 10)
        assert weth.transfer("alice", "alice", 11) is False
        assert weth.balance_of("alice") == 10

    def test_zero_transfer_is_noop(self, weth):
        assert weth.transfer("alice", "bob", 0)
        assert weth.balance_of("bob") == 0

    def test_amount_type_checked(self, weth):
        with pytest.raises(TypeError):
            weth.transfer("alice", "bob", 1.5)
        with pytest.raises(ValueError):
            weth.transfer("alice", "bob", -1)


class TestAllowances:

    def test_approve(self, weth):
        assert weth.approve("alice", "engine", 7)
        assert weth.allowance("alice", "engine") == 7
        assert weth.allowance("alice", "other") == 0

    def test_approve_overwrites(self, weth):
        weth.approve("alice", "engine", 7)
        weth.approve("alice", "engine", 3)
        assert weth.allowance("alice", "engine") == 3

    def test_approve_zero_address_reverts(self, weth):
        with pytest.raises(NotZeroAddress):
            weth.approve("alice", ZERO_ADDRESS, 1)

    def test_transfer_from_spends_allowance(self, weth):
        weth.issue("alice", 10)
        weth.approve("alice", "engine", 8)
        assert weth.transfer_from("engine", "alice", "engine", 5)
        assert weth.balance_of("engine") == 5
        assert weth.allowance("alice", "engine") == 3

    def test_transfer_from_without_allowance(self, weth):
        weth.issue("alice", 10)
        assert weth.transfer_from("engine", "alice", "engine", 5) is False
        assert weth.balance_of("alice") == 10

    def test_transfer_from_beyond_balance_keeps_allowance(self, weth):
        weth.issue("alice", 3)
        weth.approve("alice", "engine", 8)
        assert weth.transfer_from("engine", "alice", "engine", 5) is False
        assert weth.allowance("alice", "engine") == 8

    def test_transfer_from_back_to_owner_spends_allowance(self, weth):
        weth.issue("alice", 10)
        weth.approve("alice", "engine", 8)
        assert weth.transfer_from("engine", "alice", "alice", 5)
        assert weth.balance_of("alice") == 10
        assert weth.allowance("alice", "engine") == 3


class TestStablecoinToken:

    def test_owner(self, dsc):
        assert dsc.owner == DEPLOYER
        assert dsc.name == "Decentralized Stable Coin"

    def test_owner_can_mint(self, dsc):
        assert dsc.mint(DEPLOYER, "alice", 100)
        assert dsc.balance_of("alice") == 100
        assert dsc.total_supply() == 100

    def test_non_owner_cannot_mint(self, dsc):
        with pytest.raises(NotOwner):
            dsc.mint("alice", "alice", 100)

    def test_mint_to_zero_address(self, dsc):
        with pytest.raises(NotZeroAddress):
            dsc.mint(DEPLOYER, ZERO_ADDRESS, 100)

    def test_mint_zero(self, dsc):
        with pytest.raises(MustBeMoreThanZero):
            dsc.mint(DEPLOYER, "alice", 0)

    def test_burn(self, dsc):
        dsc.mint(DEPLOYER, DEPLOYER, 100)
        dsc.burn(DEPLOYER, 40)
        assert dsc.balance_of(DEPLOYER) == 60
        assert dsc.total_supply() == 60
        assert dsc.ledger.get_balance(SYSTEM_WALLET, "DSC") == -60

    def test_burn_more_than_balance(self, dsc):
        dsc.mint(DEPLOYER, DEPLOYER, 100)
        with pytest.raises(BurnAmountExceedsBalance):
            dsc.burn(DEPLOYER, 101)

    def test_burn_zero(self, dsc):
        with pytest.raises(MustBeMoreThanZero):
            dsc.burn(DEPLOYER, 0)

    def test_non_owner_cannot_burn(self, dsc):
        with pytest.raises(NotOwner):
            dsc.burn("alice", 1)

    def test_transfer_ownership(self, dsc):
        dsc.transfer_ownership(DEPLOYER, "engine")
        assert dsc.owner == "engine"
        with pytest.raises(NotOwner):
            dsc.mint(DEPLOYER, "alice", 1)
        assert dsc.mint("engine", "alice", 1)

    def test_transfer_ownership_requires_owner(self, dsc):
        with pytest.raises(NotOwner):
            dsc.transfer_ownership("alice", "alice")


class TestRequireSuccess:

    def test_true_passes(self):
        require_success(lambda: True)

    def test_none_passes(self):
        require_success(lambda: None)

    def test_false_raises(self):
        with pytest.raises(TransferFailed, match="pull"):
            require_success(lambda: False, TransferFailed, "pull")

    def test_token_error_is_wrapped(self, dsc):
        with pytest.raises(MintFailed) as exc_info:
            require_success(lambda: dsc.mint("alice", "alice", 1), MintFailed, "mint")
        assert isinstance(exc_info.value.__cause__, NotOwner)

    def test_foreign_errors_are_wrapped(self):
        def boom():
            raise RuntimeError("ERC20: insufficient allowance")
        with pytest.raises(TransferFailed, match="insufficient allowance") as exc_info:
            require_success(boom, TransferFailed, "pull")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_engine_errors_keep_their_kind(self):
        def reenter():
            raise ReentrantCall("engine is locked")
        with pytest.raises(ReentrantCall):
            require_success(reenter)
