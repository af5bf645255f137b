"""
Tests for the SettlementLedger value-transfer primitive.

The settlement ledger moves a single integer currency atomically and
reports failure instead of raising. SYSTEM_WALLET is the issuance source
and the only wallet allowed below zero.
"""

import pytest

from bond_ledger import (
    SettlementLedger, ValueTransfer, ExecuteResult, Move,
    BondLedgerError, SYSTEM_WALLET,
)


@pytest.fixture
def cash():
    ledger = SettlementLedger("test", verbose=False)
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    ledger.mint("alice", 1_000)
    return ledger


class TestProtocol:

    def test_implements_value_transfer(self, cash):
        assert isinstance(cash, ValueTransfer)


class TestRegistration:

    def test_system_wallet_preregistered(self):
        ledger = SettlementLedger(verbose=False)
        assert ledger.is_registered(SYSTEM_WALLET)
        assert ledger.get_balance(SYSTEM_WALLET) == 0

    def test_duplicate_registration_raises(self, cash):
        with pytest.raises(ValueError, match="already registered"):
            cash.register_wallet("alice")

    def test_empty_wallet_id_raises(self, cash):
        with pytest.raises(ValueError, match="cannot be empty"):
            cash.register_wallet(" ")

    def test_unknown_wallet_balance_is_zero(self, cash):
        assert cash.get_balance("nobody") == 0

    def test_list_wallets(self, cash):
        assert cash.list_wallets() == {SYSTEM_WALLET, "alice", "bob"}


class TestIssuance:

    def test_mint_draws_on_system_wallet(self, cash):
        assert cash.get_balance("alice") == 1_000
        assert cash.get_balance(SYSTEM_WALLET) == -1_000

    def test_mint_registers_new_wallet(self, cash):
        cash.mint("nobody", 10)
        assert cash.is_registered("nobody")
        assert cash.get_balance("nobody") == 10

    def test_mint_zero_raises(self, cash):
        with pytest.raises(ValueError):
            cash.mint("alice", 0)


class TestTransfer:

    def test_successful_transfer(self, cash):
        assert cash.transfer(400, "alice", "bob") is True
        assert cash.get_balance("alice") == 600
        assert cash.get_balance("bob") == 400

    def test_exact_balance_allowed(self, cash):
        assert cash.transfer(1_000, "alice", "bob") is True
        assert cash.get_balance("alice") == 0

    def test_overdraft_rejected(self, cash):
        assert cash.transfer(1_001, "alice", "bob") is False
        assert cash.get_balance("alice") == 1_000
        assert cash.get_balance("bob") == 0

    @pytest.mark.parametrize("amount", [0, -5, 2.5, True])
    def test_invalid_amount_rejected(self, cash, amount):
        assert cash.transfer(amount, "alice", "bob") is False
        assert cash.get_balance("alice") == 1_000

    def test_self_transfer_rejected(self, cash):
        assert cash.transfer(10, "alice", "alice") is False

    def test_unregistered_dest_registered_on_receipt(self, cash):
        assert cash.get_balance("dave") == 0
        assert cash.transfer(10, "alice", "dave") is True
        assert cash.is_registered("dave")
        assert cash.get_balance("dave") == 10
        assert cash.get_balance("alice") == 990
        assert cash.verify_conservation()['valid']

    def test_rejected_credit_registers_nothing(self, cash):
        assert cash.transfer(5_000, "alice", "dave") is False
        assert not cash.is_registered("dave")

    @pytest.mark.parametrize("dest", ["", "  "])
    def test_blank_dest_rejected(self, cash, dest):
        assert cash.transfer(10, "alice", dest) is False
        assert cash.get_balance("alice") == 1_000

    def test_unregistered_source_rejected(self, cash):
        assert cash.transfer(10, "nobody", "alice") is False

    def test_transfer_log(self, cash):
        before = len(cash.transfer_log)
        cash.transfer(10, "alice", "bob")
        cash.transfer(10_000, "alice", "bob")  # rejected, not logged
        assert len(cash.transfer_log) == before + 1
        assert cash.transfer_log[-1].quantity == 10

    def test_execute_result(self, cash):
        assert cash.execute(Move(1, "alice", "bob", "x")) == ExecuteResult.APPLIED
        assert cash.execute(Move(5_000, "alice", "bob", "y")) == ExecuteResult.REJECTED

    def test_verbose_prints_rejection(self, capsys):
        ledger = SettlementLedger(verbose=True)
        ledger.register_wallet("alice")
        ledger.transfer(5, "alice", SYSTEM_WALLET)
        assert "REJECTED" in capsys.readouterr().out


class TestConservation:

    def test_supply_is_zero(self, cash):
        cash.transfer(250, "alice", "bob")
        result = cash.verify_conservation()
        assert result['valid']
        assert result['supply'] == 0
        assert result['outstanding'] == 1_000

    def test_set_balance_breaks_conservation(self):
        ledger = SettlementLedger(verbose=False, test_mode=True)
        ledger.register_wallet("alice")
        ledger.set_balance("alice", 50)
        result = ledger.verify_conservation()
        assert not result['valid']
        assert result['discrepancies'][0]['check'] == 'supply'

    def test_overdraft_detected(self):
        ledger = SettlementLedger(verbose=False, test_mode=True)
        ledger.register_wallet("alice")
        ledger.set_balance("alice", -5)
        checks = {d['check'] for d in ledger.verify_conservation()['discrepancies']}
        assert 'overdraft' in checks


class TestTestMode:

    def test_set_balance_disabled_in_production(self, cash):
        with pytest.raises(BondLedgerError, match="disabled in production mode"):
            cash.set_balance("alice", 5)

    def test_set_balance_unregistered_wallet(self):
        ledger = SettlementLedger(verbose=False, test_mode=True)
        with pytest.raises(ValueError, match="not registered"):
            ledger.set_balance("nobody", 5)
