"""
settlement.py - Settlement Currency Ledger

The SettlementLedger is the value-transfer primitive the bond ledger pays
through. It holds one integer-denominated currency across registered wallets.

Key responsibilities:
    - Implements the ValueTransfer protocol (transfer + get_balance)
    - Applies every move atomically: it either fully applies or nothing moves
    - Issues currency out of SYSTEM_WALLET, the only wallet allowed below zero
    - Registers a receiving wallet on its first credit
    - Always validates and always logs applied moves
"""

from __future__ import annotations
from typing import Any, Dict, List, Set, Tuple

from .core import (
    Move, ExecuteResult,
    SYSTEM_WALLET,
    BondLedgerError,
    is_int,
)


class SettlementLedger:
    """
    Single-currency ledger with full validation and a transfer log.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own instance.

    Example:
        settlement = SettlementLedger("ustx")
        settlement.register_wallet("alice")
        settlement.register_wallet("bob")
        settlement.mint("alice", 1_000_000)
        settlement.transfer(250_000, "alice", "bob")
    """

    def __init__(
        self,
        name: str = "settlement",
        verbose: bool = True,
        test_mode: bool = False,
    ):
        """
        Create a settlement ledger.

        Args:
            name: Ledger identifier (used in move references)
            verbose: Print rejected moves (default: True)
            test_mode: Allow set_balance() calls (default: False)
        """
        self.name = name
        self.balances: Dict[str, int] = {}
        self.registered_wallets: Set[str] = set()
        self.transfer_log: List[Move] = []
        self.verbose = verbose
        self._test_mode = test_mode

        # Auto-register the system wallet (used for currency issuance)
        self.registered_wallets.add(SYSTEM_WALLET)
        self.balances[SYSTEM_WALLET] = 0

    # ========================================================================
    # ValueTransfer PROTOCOL IMPLEMENTATION
    # ========================================================================

    def get_balance(self, wallet_id: str) -> int:
        """Return a wallet's balance. Unknown wallets hold nothing."""
        return self.balances.get(wallet_id, 0)

    def transfer(self, amount: int, source: str, dest: str) -> bool:
        """
        Move amount from source to dest.

        An unknown dest is registered on receipt, matching get_balance()
        treating unknown wallets as empty.

        Returns:
            True if the funds moved, False if the transfer was rejected.
            A rejected transfer leaves every balance untouched.
        """
        if not is_int(amount) or amount <= 0:
            if self.verbose:
                print(f"✗ REJECTED: invalid amount {amount!r}")
            return False
        if not source or not dest or not source.strip() or not dest.strip() or source == dest:
            if self.verbose:
                print(f"✗ REJECTED: invalid route {source!r} → {dest!r}")
            return False
        move = Move(amount, source, dest, f"{self.name}:{len(self.transfer_log)}")
        return self.execute(move) == ExecuteResult.APPLIED

    # ========================================================================
    # QUERIES
    # ========================================================================

    def list_wallets(self) -> Set[str]:
        """List all registered wallet IDs."""
        return self.registered_wallets.copy()

    def is_registered(self, wallet_id: str) -> bool:
        return wallet_id in self.registered_wallets

    def total_supply(self) -> int:
        """
        Sum of all balances, system wallet included.

        Moves only redistribute, so this is always zero.
        """
        return sum(self.balances[w] for w in sorted(self.registered_wallets))

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify that the currency is conserved and no wallet is overdrawn.

        Returns:
            Dict with keys:
            - 'valid': bool - True if all checks hold
            - 'supply': int - Sum of all balances (must be 0)
            - 'outstanding': int - Currency issued out of SYSTEM_WALLET
            - 'discrepancies': List[Dict] - Details of any violations
        """
        discrepancies = []
        supply = self.total_supply()
        if supply != 0:
            discrepancies.append({'check': 'supply', 'expected': 0, 'actual': supply})
        for wallet in sorted(self.registered_wallets):
            if wallet != SYSTEM_WALLET and self.balances[wallet] < 0:
                discrepancies.append({
                    'check': 'overdraft',
                    'wallet': wallet,
                    'actual': self.balances[wallet],
                })
        return {
            'valid': len(discrepancies) == 0,
            'supply': supply,
            'outstanding': -self.balances[SYSTEM_WALLET],
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # REGISTRATION AND ISSUANCE (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Register a new wallet with a zero balance.

        Raises:
            ValueError: If wallet is already registered or the id is empty
        """
        if not wallet_id or not wallet_id.strip():
            raise ValueError("wallet_id cannot be empty")
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = 0
        return wallet_id

    def mint(self, wallet_id: str, amount: int) -> None:
        """
        Issue new currency into a wallet out of SYSTEM_WALLET.

        The wallet is registered if it is not already.

        Raises:
            BondLedgerError: If the issuance move is rejected
        """
        move = Move(amount, SYSTEM_WALLET, wallet_id, f"{self.name}:mint:{len(self.transfer_log)}")
        if self.execute(move) != ExecuteResult.APPLIED:
            raise BondLedgerError(f"Issuance of {amount} to {wallet_id} rejected")

    def set_balance(self, wallet_id: str, amount: int) -> None:
        """
        Set a wallet's balance directly.

        WARNING: This bypasses conservation and is only available in test mode.
        Use mint() and transfer() otherwise.

        Raises:
            BondLedgerError: If called when test_mode is False
            ValueError: If wallet is not registered
        """
        if not self._test_mode:
            raise BondLedgerError(
                "set_balance() is disabled in production mode. "
                "Use mint() and transfer() to modify balances. "
                "Set test_mode=True when creating SettlementLedger for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} not registered")
        if not is_int(amount):
            raise ValueError(f"amount must be int, got {type(amount)}")
        self.balances[wallet_id] = amount

    # ========================================================================
    # MOVE EXECUTION (Mutating)
    # ========================================================================

    def execute(self, move: Move) -> ExecuteResult:
        """
        Validate and apply one move atomically.

        Returns:
            ExecuteResult.APPLIED if successful
            ExecuteResult.REJECTED if validation failed
        """
        valid, reason = self._validate_move(move)
        if not valid:
            if self.verbose:
                print(f"✗ REJECTED: {reason}")
            return ExecuteResult.REJECTED

        if move.dest not in self.registered_wallets:
            self.registered_wallets.add(move.dest)
            self.balances[move.dest] = 0
        self.balances[move.source] -= move.quantity
        self.balances[move.dest] += move.quantity
        self.transfer_log.append(move)
        return ExecuteResult.APPLIED

    def _validate_move(self, move: Move) -> Tuple[bool, str]:
        """
        Check source registration and the no-overdraft rule.

        SYSTEM_WALLET is exempt from the balance check. The dest may be
        unregistered; execute() registers it when the move applies.
        """
        if move.source not in self.registered_wallets:
            return False, f"wallet not registered: {move.source}"
        if move.source != SYSTEM_WALLET:
            current = self.balances[move.source]
            if current < move.quantity:
                return False, f"{move.source}: balance {current} < {move.quantity}"
        return True, ""
