"""
Core types and pure functions for the bond ledger.

This module provides the foundational data structures and protocols:
1. Protocols: Clock, ValueTransfer and IssuerAuthorization collaborators
2. Immutable data structures: Move, HoldingChange, OperationRecord
3. Exceptions: BondLedgerError and the bond error taxonomy
4. IdSequence: the explicitly owned bond id generator
5. Canonical serialization used for record ids and state digests

Nothing in this module mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any, Dict, Optional, Protocol, Tuple, runtime_checkable,
)
import hashlib


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved settlement wallet for currency issuance.
# The system wallet is exempt from balance validation and can hold any balance.
SYSTEM_WALLET = "system"

# Default settlement wallet holding pooled interest funds on behalf of the ledger.
CUSTODY_WALLET = "bond-ledger"

# Interest rates are quoted in basis points.
BPS_DENOMINATOR = 10_000

# Bond ids start at 1 and strictly increase.
FIRST_BOND_ID = 1

# Operation names recorded in the audit trail.
OP_CREATE_BOND = "create_bond"
OP_PURCHASE = "purchase_bonds"
OP_TRANSFER = "transfer"
OP_FUND_INTEREST = "fund_interest_payments"
OP_CLAIM_INTEREST = "claim_interest"
OP_UPDATE_MATURITY = "update_bond_maturity"
OP_REDEEM = "redeem_bonds"
OP_EARLY_REDEMPTION = "early_redemption"


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a settlement transfer attempt.

    APPLIED: The move was validated and applied.
    REJECTED: The move failed validation and nothing moved.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class BondLedgerError(Exception):
    """Base exception for all bond ledger errors."""
    code = 0


class NotAuthorized(BondLedgerError):
    """Raised when the caller lacks the role the operation requires."""
    code = 100


class BondNotFound(BondLedgerError):
    """Raised when a bond id has never been issued."""
    code = 101


class BondAlreadyExists(BondLedgerError):
    """Reserved. Bond ids come from a sequence, so no flow raises this today."""
    code = 102


class InsufficientFunds(BondLedgerError):
    """Raised when a settlement-currency balance is too low or a transfer fails."""
    code = 103


class BondSoldOut(BondLedgerError):
    """Raised when a purchase asks for more units than remain for sale."""
    code = 104


class InvalidAmount(BondLedgerError):
    """Raised for zero amounts, self-transfers and zero-value payments."""
    code = 105


class BondNotMature(BondLedgerError):
    """Raised when maturity is required but not reached."""
    code = 106


class BondAlreadyMature(BondLedgerError):
    """Raised when the maturity transition has already fired."""
    code = 107


class PaymentAlreadyMade(BondLedgerError):
    """Reserved. Interest claims are pooled, so no flow raises this today."""
    code = 108


class InsufficientBalance(BondLedgerError):
    """Raised when a holder owns fewer bond units than a transfer moves."""
    code = 109


class InvalidParameters(BondLedgerError):
    """Raised when bond terms fail validation at issuance."""
    code = 110


class NotBondOwner(BondLedgerError):
    """Raised when the caller holds no units of the bond."""
    code = 111


class PaymentInsufficient(BondLedgerError):
    """Raised when the interest fund cannot cover a claim."""
    code = 112


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class Clock(Protocol):
    """Monotonically non-decreasing block height source."""

    def current_height(self) -> int:
        """Return the current height."""
        ...


@runtime_checkable
class ValueTransfer(Protocol):
    """
    Atomic movement of the settlement currency between two accounts.

    transfer() returns True when the funds moved and False otherwise.
    A False result guarantees that nothing moved.
    """

    def transfer(self, amount: int, source: str, dest: str) -> bool:
        ...

    def get_balance(self, wallet_id: str) -> int:
        """Return the settlement balance of a wallet (0 if unknown)."""
        ...


@runtime_checkable
class IssuerAuthorization(Protocol):
    """Read-only lookup against the issuer registry."""

    def is_authorized_issuer(self, identity: str) -> bool:
        ...


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def is_int(value: Any) -> bool:
    """True for real integers. bool is an int subclass and is rejected."""
    return isinstance(value, int) and not isinstance(value, bool)


# ============================================================================
# ID SEQUENCE
# ============================================================================

class IdSequence:
    """
    Strictly increasing id generator owned by whoever constructs it.

    The ledger receives one at construction time instead of keeping a
    module-level counter, so two ledgers never share ids by accident.
    """

    def __init__(self, start: int = FIRST_BOND_ID):
        if not is_int(start) or start < 1:
            raise ValueError(f"start must be a positive integer, got {start!r}")
        self._next = start

    def peek(self) -> int:
        """Return the id the next call to allocate() will hand out."""
        return self._next

    def allocate(self) -> int:
        value = self._next
        self._next += 1
        return value


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single settlement-currency transfer between two wallets.

    Attributes:
        quantity: Amount transferred, a positive integer.
        source: Wallet debited.
        dest: Wallet credited.
        reference: Identifier of the operation generating this move.
    """
    quantity: int
    source: str
    dest: str
    reference: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.reference or not self.reference.strip():
            raise ValueError("Move reference cannot be empty")
        if not is_int(self.quantity):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity}: {self.source}→{self.dest})"


@dataclass(frozen=True, slots=True)
class HoldingChange:
    """Before/after unit count of one (bond, holder) pair."""
    bond_id: int
    holder: str
    old_units: int
    new_units: int

    @property
    def delta(self) -> int:
        return self.new_units - self.old_units


def _canonicalize(value: Any) -> str:
    """
    Produce a canonical string representation of a value for hashing.

    Output does not depend on dict insertion order. Dataclasses with slots
    are serialized field by field.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"N:{value}"
    if isinstance(value, str):
        return f"S:{value}"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        serialized = ",".join(f"{_canonicalize(k)}:{_canonicalize(v)}" for k, v in items)
        return f"{{{serialized}}}"
    if isinstance(value, (list, tuple)):
        serialized = ",".join(_canonicalize(item) for item in value)
        return f"[{serialized}]"
    if hasattr(value, "__dataclass_fields__"):
        fields = {name: getattr(value, name) for name in value.__dataclass_fields__}
        return f"{type(value).__name__}{_canonicalize(fields)}"
    return f"R:{repr(value)}"


def canonical_digest(value: Any, length: int = 16) -> str:
    """Hex sha256 of the canonical form of value, truncated to length."""
    return hashlib.sha256(_canonicalize(value).encode()).hexdigest()[:length]


@dataclass(frozen=True, slots=True)
class OperationRecord:
    """
    An applied, immutable record of one ledger operation.

    Attributes:
        operation: Operation name (one of the OP_* constants)
        caller: Identity that submitted the operation
        bond_id: Bond the operation acted on
        height: Clock height at which it applied
        sequence_number: Monotonic sequence within the ledger
        moves: Settlement transfers performed, in order
        holding_changes: Unit balance changes
        old_bond: Bond record before the operation (None at issuance)
        new_bond: Bond record after the operation
        old_fund: Interest fund before the operation
        new_fund: Interest fund after the operation
        record_id: Content hash of everything above (auto-computed)
    """
    operation: str
    caller: str
    bond_id: int
    height: int
    sequence_number: int
    moves: Tuple[Move, ...] = ()
    holding_changes: Tuple[HoldingChange, ...] = ()
    old_bond: Any = None
    new_bond: Any = None
    old_fund: int = 0
    new_fund: int = 0
    record_id: str = field(default="")

    def __post_init__(self):
        if not self.record_id:
            content = (
                self.operation, self.caller, self.bond_id, self.height,
                self.sequence_number, self.moves, self.holding_changes,
                self.old_bond, self.new_bond, self.old_fund, self.new_fund,
            )
            object.__setattr__(self, 'record_id', canonical_digest(content))

    def bond_changes(self) -> Dict[str, Tuple[Any, Any]]:
        """Fields of the bond record that differ between old and new."""
        if self.old_bond is None or self.new_bond is None:
            return {}
        changes = {}
        for name in self.new_bond.__dataclass_fields__:
            old_val = getattr(self.old_bond, name)
            new_val = getattr(self.new_bond, name)
            if old_val != new_val:
                changes[name] = (old_val, new_val)
        return changes

    def __repr__(self) -> str:
        w = 100  # Inner content width
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Operation: ' + self.operation + ' #' + str(self.sequence_number))}│",
            f"├{bar}┤",
            f"│{pad('   record_id : ' + self.record_id)}│",
            f"│{pad('   caller    : ' + self.caller)}│",
            f"│{pad('   bond_id   : ' + str(self.bond_id))}│",
            f"│{pad('   height    : ' + str(self.height))}│",
        ]
        if self.moves:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Moves (' + str(len(self.moves)) + '):')}│")
            for i, move in enumerate(self.moves):
                lines.append(f"│{pad(f'   [{i}] {move.quantity}: {move.source} → {move.dest}')}│")
        if self.holding_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Holdings (' + str(len(self.holding_changes)) + '):')}│")
            for hc in self.holding_changes:
                lines.append(f"│{pad(f'   {hc.holder}: {hc.old_units} → {hc.new_units}')}│")
        changed = self.bond_changes()
        if changed:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Bond Changes:')}│")
            for field_name, (old_val, new_val) in changed.items():
                lines.append(f"│{pad(f'      {field_name}: {old_val!r} → {new_val!r}')}│")
        if self.old_fund != self.new_fund:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(f' Interest fund: {self.old_fund} → {self.new_fund}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)
