"""
ledger.py - Bond Ledger State Machine

The BondLedger is the central state manager for bond issuance, holdings and
interest funds. It is the only module that mutates those records.

Key responsibilities:
    - Issues bonds for authorized issuers and sells them on the primary market
    - Reallocates units between holders (secondary market)
    - Pools issuer interest deposits and pays proportional claims out of them
    - Drives the active -> mature transition and both redemption paths
    - Always validates before the first mutation and always logs

Every mutating operation follows the same order:
    read state -> validate -> external transfer (if funds move) -> commit
so a failed transfer leaves the ledger untouched without any rollback code.
"""

from __future__ import annotations
from dataclasses import replace
from functools import wraps
from typing import Any, Dict, List, Optional, Tuple

from .bond import (
    Bond,
    create_bond_record,
    compute_interest_amount,
    compute_redemption_amount,
    next_payment_height,
    payment_schedule,
)
from .core import (
    # Types
    Move, HoldingChange, OperationRecord, IdSequence,
    Clock, ValueTransfer, IssuerAuthorization,
    # Constants
    CUSTODY_WALLET,
    OP_CREATE_BOND, OP_PURCHASE, OP_TRANSFER, OP_FUND_INTEREST,
    OP_CLAIM_INTEREST, OP_UPDATE_MATURITY, OP_REDEEM, OP_EARLY_REDEMPTION,
    # Exceptions
    BondLedgerError, NotAuthorized, BondNotFound, InsufficientFunds,
    BondSoldOut, InvalidAmount, BondNotMature, BondAlreadyMature,
    InsufficientBalance, NotBondOwner, PaymentInsufficient,
    # Helpers
    canonical_digest, is_int,
)


def _reported(operation: str):
    """Print a REJECTED line for a failed operation, then re-raise."""
    def decorator(method):
        @wraps(method)
        def wrapper(self, caller, *args, **kwargs):
            try:
                return method(self, caller, *args, **kwargs)
            except BondLedgerError as e:
                if self.verbose:
                    print(f"✗ REJECTED {operation} by {caller}: {type(e).__name__}: {e}")
                raise
        return wrapper
    return decorator


class BondLedger:
    """
    Bond registry, holdings table and interest-fund accounting.

    Collaborators are passed in and never owned:
        registry: answers is_authorized_issuer() at issuance
        settlement: moves currency (ValueTransfer protocol)
        clock: supplies the current block height

    Thread Safety:
        Not thread-safe. Operations must be applied one at a time.

    Example:
        ledger = BondLedger(registry, settlement, clock)
        bond_id = ledger.create_bond("issuer", 1_000_000_000, 1_000_000, 500, 144, 52_560, False)
        ledger.purchase_bonds("alice", bond_id, 5)
    """

    def __init__(
        self,
        registry: IssuerAuthorization,
        settlement: ValueTransfer,
        clock: Clock,
        id_sequence: Optional[IdSequence] = None,
        custody_wallet: str = CUSTODY_WALLET,
        name: str = "bonds",
        verbose: bool = True,
    ):
        """
        Create a bond ledger.

        Args:
            registry: Issuer authorization lookup
            settlement: Value-transfer primitive for the settlement currency
            clock: Block height source
            id_sequence: Bond id generator (a fresh one starting at 1 if omitted)
            custody_wallet: Settlement wallet holding pooled interest funds
            name: Ledger identifier
            verbose: Print applied and rejected operations (default: True)
        """
        if not custody_wallet or not custody_wallet.strip():
            raise ValueError("custody_wallet cannot be empty")
        self.name = name
        self.registry = registry
        self.settlement = settlement
        self.clock = clock
        self.id_sequence = id_sequence if id_sequence is not None else IdSequence()
        self.custody_wallet = custody_wallet
        self.verbose = verbose

        self._bonds: Dict[int, Bond] = {}
        self._holdings: Dict[Tuple[int, str], int] = {}
        self._interest_funds: Dict[int, int] = {}
        self.operation_log: List[OperationRecord] = []
        self._next_sequence: int = 0

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def _lookup_bond(self, bond_id: int) -> Optional[Bond]:
        return self._bonds.get(bond_id)

    def _lookup_holding(self, bond_id: int, holder: str) -> Optional[int]:
        return self._holdings.get((bond_id, holder))

    def _lookup_fund(self, bond_id: int) -> Optional[int]:
        return self._interest_funds.get(bond_id)

    def _require_bond(self, bond_id: int) -> Bond:
        bond = self._lookup_bond(bond_id)
        if bond is None:
            raise BondNotFound(f"Bond {bond_id} not found")
        return bond

    @staticmethod
    def _require_recipient(recipient: Any) -> str:
        if not isinstance(recipient, str) or not recipient.strip():
            raise InvalidAmount(f"recipient must be a non-empty identity, got {recipient!r}")
        return recipient

    # ========================================================================
    # READ-ONLY QUERIES
    # ========================================================================

    def get_bond(self, bond_id: int) -> Optional[Bond]:
        """Return the bond record, or None if the id was never issued."""
        return self._lookup_bond(bond_id)

    def get_balance(self, bond_id: int, holder: str) -> int:
        """Units of bond_id held by holder (0 when no holding exists)."""
        units = self._lookup_holding(bond_id, holder)
        return units if units is not None else 0

    def is_bond_mature(self, bond_id: int) -> bool:
        return self._require_bond(bond_id).mature

    def get_next_interest_payment(self, bond_id: int) -> Optional[int]:
        """Height of the next scheduled payment, or None past the last one."""
        bond = self._require_bond(bond_id)
        return next_payment_height(bond, self.clock.current_height())

    def get_interest_payment_fund(self, bond_id: int) -> int:
        fund = self._lookup_fund(bond_id)
        return fund if fund is not None else 0

    def payment_schedule(self, bond_id: int) -> List[int]:
        return payment_schedule(self._require_bond(bond_id))

    def get_positions(self, bond_id: int) -> Dict[str, int]:
        """All non-zero holdings of a bond, keyed by holder."""
        return {
            holder: units
            for (bid, holder), units in sorted(self._holdings.items())
            if bid == bond_id and units != 0
        }

    def list_bonds(self) -> List[int]:
        return sorted(self._bonds.keys())

    def history(self, bond_id: Optional[int] = None) -> List[OperationRecord]:
        """Applied operations, optionally restricted to one bond."""
        if bond_id is None:
            return list(self.operation_log)
        return [r for r in self.operation_log if r.bond_id == bond_id]

    # ========================================================================
    # VERIFICATION
    # ========================================================================

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify unit and fund conservation for every bond.

        Checks per bond:
            sum(holdings) + remaining_supply + redeemed_units == total_units
            0 <= remaining_supply <= total_units
            no negative holding, no negative interest fund
        and across bonds:
            sum(interest funds) == settlement balance of the custody wallet

        Returns:
            Dict with keys 'valid' (bool) and 'discrepancies' (List[Dict])
        """
        discrepancies = []
        held: Dict[int, int] = {}
        for (bond_id, holder), units in self._holdings.items():
            if units < 0:
                discrepancies.append({
                    'check': 'negative_holding', 'bond_id': bond_id,
                    'holder': holder, 'actual': units,
                })
            held[bond_id] = held.get(bond_id, 0) + units

        for bond_id in sorted(self._bonds):
            bond = self._bonds[bond_id]
            accounted = held.get(bond_id, 0) + bond.remaining_supply + bond.redeemed_units
            if accounted != bond.total_units:
                discrepancies.append({
                    'check': 'units', 'bond_id': bond_id,
                    'expected': bond.total_units, 'actual': accounted,
                })
            if not 0 <= bond.remaining_supply <= bond.total_units:
                discrepancies.append({
                    'check': 'remaining_supply', 'bond_id': bond_id,
                    'actual': bond.remaining_supply,
                })
            if self.get_interest_payment_fund(bond_id) < 0:
                discrepancies.append({
                    'check': 'negative_fund', 'bond_id': bond_id,
                    'actual': self.get_interest_payment_fund(bond_id),
                })

        pooled = sum(self._interest_funds.values())
        custody = self.settlement.get_balance(self.custody_wallet)
        if pooled != custody:
            discrepancies.append({
                'check': 'custody', 'expected': pooled, 'actual': custody,
            })

        return {
            'valid': len(discrepancies) == 0,
            'discrepancies': discrepancies,
        }

    def state_digest(self) -> str:
        """Deterministic hash of bonds, holdings and interest funds."""
        return canonical_digest({
            'bonds': [self._bonds[b] for b in sorted(self._bonds)],
            'holdings': sorted(self._holdings.items()),
            'funds': sorted(self._interest_funds.items()),
        }, length=64)

    # ========================================================================
    # INTERNALS (Mutating)
    # ========================================================================

    def _pay(self, amount: int, source: str, dest: str, reference: str) -> Move:
        """
        Run the external transfer. Must precede every local mutation.

        Raises:
            InvalidAmount: If source and dest are the same wallet
            InsufficientFunds: If the transfer primitive reports failure
        """
        try:
            move = Move(amount, source, dest, reference)
        except ValueError as e:
            raise InvalidAmount(f"Cannot pay {amount} from {source} to {dest}: {e}") from e
        if not self.settlement.transfer(amount, source, dest):
            raise InsufficientFunds(f"Transfer of {amount} from {source} to {dest} failed")
        return move

    def _set_holding(self, bond_id: int, holder: str, units: int) -> HoldingChange:
        old = self.get_balance(bond_id, holder)
        self._holdings[(bond_id, holder)] = units
        return HoldingChange(bond_id, holder, old, units)

    def _commit(self, operation: str, caller: str, bond_id: int, **effects) -> OperationRecord:
        """Append an audit record for an applied operation."""
        sequence = self._next_sequence
        self._next_sequence += 1
        record = OperationRecord(
            operation=operation,
            caller=caller,
            bond_id=bond_id,
            height=self.clock.current_height(),
            sequence_number=sequence,
            **effects,
        )
        self.operation_log.append(record)
        if self.verbose:
            print(repr(record))
        return record

    # ========================================================================
    # ISSUANCE
    # ========================================================================

    @_reported(OP_CREATE_BOND)
    def create_bond(
        self,
        caller: str,
        total_face_value: int,
        denomination: int,
        interest_rate_bps: int,
        payment_frequency: int,
        maturity_offset: int,
        allow_early_redemption: bool,
    ) -> int:
        """
        Issue a new bond with the caller as issuer.

        Returns:
            The new bond id

        Raises:
            NotAuthorized: If caller is not a registered issuer
            InvalidParameters: If any term fails validation
        """
        if not self.registry.is_authorized_issuer(caller):
            raise NotAuthorized(f"{caller} is not an authorized issuer")

        height = self.clock.current_height()
        # Validate before allocating so a rejected issuance leaves no gap.
        bond = create_bond_record(
            self.id_sequence.peek(), caller, total_face_value, denomination,
            interest_rate_bps, payment_frequency, maturity_offset,
            allow_early_redemption, height,
        )
        bond_id = self.id_sequence.allocate()

        self._bonds[bond_id] = bond
        self._interest_funds[bond_id] = 0
        self._commit(OP_CREATE_BOND, caller, bond_id, new_bond=bond)
        return bond_id

    # ========================================================================
    # PRIMARY AND SECONDARY MARKET
    # ========================================================================

    @_reported(OP_PURCHASE)
    def purchase_bonds(
        self,
        caller: str,
        bond_id: int,
        units: int,
        recipient: Optional[str] = None,
    ) -> int:
        """
        Buy units from the issuer's unsold inventory.

        The caller pays units * denomination to the issuer; the units are
        credited to recipient (the caller when omitted).

        Returns:
            Units purchased

        Raises:
            BondNotFound, InvalidAmount, BondSoldOut, InsufficientFunds
        """
        bond = self._require_bond(bond_id)
        if not is_int(units) or units <= 0:
            raise InvalidAmount(f"units must be a positive integer, got {units!r}")
        if bond.remaining_supply < units:
            raise BondSoldOut(
                f"Bond {bond_id}: {units} requested, {bond.remaining_supply} remaining"
            )

        buyer = self._require_recipient(recipient) if recipient is not None else caller
        cost = units * bond.denomination
        available = self.settlement.get_balance(buyer)
        if available < cost:
            raise InsufficientFunds(f"{buyer} holds {available}, purchase costs {cost}")

        move = self._pay(cost, caller, bond.issuer, f"purchase:{bond_id}:{buyer}")

        change = self._set_holding(bond_id, buyer, self.get_balance(bond_id, buyer) + units)
        new_bond = replace(bond, remaining_supply=bond.remaining_supply - units)
        self._bonds[bond_id] = new_bond
        self._commit(
            OP_PURCHASE, caller, bond_id,
            moves=(move,), holding_changes=(change,),
            old_bond=bond, new_bond=new_bond,
        )
        return units

    @_reported(OP_TRANSFER)
    def transfer(self, caller: str, bond_id: int, amount: int, recipient: str) -> int:
        """
        Move units from the caller to another holder. No currency moves.

        Returns:
            Units transferred

        Raises:
            BondNotFound, InvalidAmount, InsufficientBalance
        """
        self._require_bond(bond_id)
        if not is_int(amount) or amount <= 0:
            raise InvalidAmount(f"amount must be a positive integer, got {amount!r}")
        self._require_recipient(recipient)
        if recipient == caller:
            raise InvalidAmount(f"{caller} cannot transfer to itself")

        held = self.get_balance(bond_id, caller)
        if held < amount:
            raise InsufficientBalance(f"{caller} holds {held} units, transfer needs {amount}")

        changes = (
            self._set_holding(bond_id, caller, held - amount),
            self._set_holding(bond_id, recipient, self.get_balance(bond_id, recipient) + amount),
        )
        self._commit(OP_TRANSFER, caller, bond_id, holding_changes=changes)
        return amount

    # ========================================================================
    # INTEREST
    # ========================================================================

    @_reported(OP_FUND_INTEREST)
    def fund_interest_payments(self, caller: str, bond_id: int, amount: int) -> int:
        """
        Deposit issuer money into the bond's interest pool.

        Returns:
            The pool balance after the deposit

        Raises:
            BondNotFound, NotAuthorized, InvalidAmount, InsufficientFunds
        """
        bond = self._require_bond(bond_id)
        if caller != bond.issuer:
            raise NotAuthorized(f"{caller} is not the issuer of bond {bond_id}")
        if not is_int(amount) or amount <= 0:
            raise InvalidAmount(f"amount must be a positive integer, got {amount!r}")
        available = self.settlement.get_balance(caller)
        if available < amount:
            raise InsufficientFunds(f"{caller} holds {available}, deposit is {amount}")

        move = self._pay(amount, caller, self.custody_wallet, f"interest_fund:{bond_id}")

        old_fund = self.get_interest_payment_fund(bond_id)
        new_fund = old_fund + amount
        self._interest_funds[bond_id] = new_fund
        self._commit(
            OP_FUND_INTEREST, caller, bond_id,
            moves=(move,), old_fund=old_fund, new_fund=new_fund,
        )
        return new_fund

    @_reported(OP_CLAIM_INTEREST)
    def claim_interest(self, caller: str, bond_id: int) -> int:
        """
        Pay the caller interest on their current holding out of the pool.

        Claims are not tied to payment periods: a holder may claim again
        whenever the pool can cover it. A claim worth nothing after rounding
        down (always the case on a 0 bps bond) is refused with InvalidAmount
        rather than paid as a zero transfer.

        Returns:
            Interest paid

        Raises:
            BondNotFound, NotBondOwner, InvalidAmount, PaymentInsufficient
        """
        bond = self._require_bond(bond_id)
        units = self.get_balance(bond_id, caller)
        if units <= 0:
            raise NotBondOwner(f"{caller} holds no units of bond {bond_id}")

        interest = compute_interest_amount(units, bond.denomination, bond.interest_rate_bps)
        if interest <= 0:
            raise InvalidAmount(f"Interest on {units} units of bond {bond_id} rounds to zero")
        old_fund = self.get_interest_payment_fund(bond_id)
        if old_fund < interest:
            raise PaymentInsufficient(
                f"Bond {bond_id} interest fund {old_fund} cannot cover {interest}"
            )

        move = self._pay(interest, self.custody_wallet, caller, f"interest_claim:{bond_id}")

        new_fund = old_fund - interest
        self._interest_funds[bond_id] = new_fund
        self._commit(
            OP_CLAIM_INTEREST, caller, bond_id,
            moves=(move,), old_fund=old_fund, new_fund=new_fund,
        )
        return interest

    # ========================================================================
    # MATURITY
    # ========================================================================

    @_reported(OP_UPDATE_MATURITY)
    def update_bond_maturity(self, caller: str, bond_id: int) -> bool:
        """
        Flip the bond to mature once the clock reaches its maturity height.

        Anyone may call this; the clock is the only gate.

        Raises:
            BondNotFound, BondAlreadyMature, BondNotMature
        """
        bond = self._require_bond(bond_id)
        if bond.mature:
            raise BondAlreadyMature(f"Bond {bond_id} is already mature")
        height = self.clock.current_height()
        if height < bond.maturity_height:
            raise BondNotMature(
                f"Bond {bond_id} matures at {bond.maturity_height}, height is {height}"
            )

        new_bond = replace(bond, mature=True)
        self._bonds[bond_id] = new_bond
        self._commit(OP_UPDATE_MATURITY, caller, bond_id, old_bond=bond, new_bond=new_bond)
        return True

    # ========================================================================
    # REDEMPTION
    # ========================================================================

    @_reported(OP_REDEEM)
    def redeem_bonds(self, caller: str, bond_id: int) -> int:
        """
        Redeem the caller's whole holding of a mature bond at face value.

        Raises:
            BondNotFound, BondNotMature, NotBondOwner, InsufficientFunds
        """
        bond = self._require_bond(bond_id)
        if not bond.mature:
            raise BondNotMature(f"Bond {bond_id} is not mature")
        return self._redeem(OP_REDEEM, caller, bond)

    @_reported(OP_EARLY_REDEMPTION)
    def early_redemption(self, caller: str, bond_id: int) -> int:
        """
        Redeem before maturity, for bonds issued with early redemption allowed.

        Raises:
            BondNotFound, NotAuthorized, NotBondOwner, InsufficientFunds
        """
        bond = self._require_bond(bond_id)
        if not bond.allow_early_redemption:
            raise NotAuthorized(f"Bond {bond_id} does not allow early redemption")
        if bond.mature:
            raise NotAuthorized(f"Bond {bond_id} is mature; use redeem_bonds")
        return self._redeem(OP_EARLY_REDEMPTION, caller, bond)

    def _redeem(self, operation: str, caller: str, bond: Bond) -> int:
        """Shared body of both redemption paths, after the gate has passed."""
        bond_id = bond.bond_id
        units = self.get_balance(bond_id, caller)
        if units <= 0:
            raise NotBondOwner(f"{caller} holds no units of bond {bond_id}")

        amount = compute_redemption_amount(units, bond.denomination)
        available = self.settlement.get_balance(bond.issuer)
        if available < amount:
            raise InsufficientFunds(
                f"Issuer {bond.issuer} holds {available}, redemption needs {amount}"
            )

        move = self._pay(amount, bond.issuer, caller, f"{operation}:{bond_id}")

        change = self._set_holding(bond_id, caller, 0)
        new_bond = replace(bond, redeemed_units=bond.redeemed_units + units)
        self._bonds[bond_id] = new_bond
        self._commit(
            operation, caller, bond_id,
            moves=(move,), holding_changes=(change,),
            old_bond=bond, new_bond=new_bond,
        )
        return amount
