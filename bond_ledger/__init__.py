"""
bond_ledger - Tokenized Bond Ledger

A deterministic ledger for the full lifecycle of tokenized bonds: issuance,
primary purchase, secondary transfer, pooled interest, maturity and redemption.

Usage:
    from bond_ledger import (
        BondLedger, BlockClock, IssuerRegistry, SettlementLedger,
        CUSTODY_WALLET,
    )

    clock = BlockClock()
    registry = IssuerRegistry("admin")
    settlement = SettlementLedger()
    for wallet in ("issuer", "alice", CUSTODY_WALLET):
        settlement.register_wallet(wallet)
    settlement.mint("alice", 10_000_000)

    registry.set_issuer_authorization("admin", "issuer", True)
    ledger = BondLedger(registry, settlement, clock)

    bond_id = ledger.create_bond("issuer", 1_000_000_000, 1_000_000, 500, 144, 52_560, False)
    ledger.purchase_bonds("alice", bond_id, 5)
"""

# Core types
from .core import (
    Clock,
    ValueTransfer,
    IssuerAuthorization,
    IdSequence,
    Move,
    HoldingChange,
    OperationRecord,
    ExecuteResult,
    canonical_digest,
    BondLedgerError,
    NotAuthorized,
    BondNotFound,
    BondAlreadyExists,
    InsufficientFunds,
    BondSoldOut,
    InvalidAmount,
    BondNotMature,
    BondAlreadyMature,
    PaymentAlreadyMade,
    InsufficientBalance,
    InvalidParameters,
    NotBondOwner,
    PaymentInsufficient,
    SYSTEM_WALLET,
    CUSTODY_WALLET,
    BPS_DENOMINATOR,
    FIRST_BOND_ID,
    OP_CREATE_BOND,
    OP_PURCHASE,
    OP_TRANSFER,
    OP_FUND_INTEREST,
    OP_CLAIM_INTEREST,
    OP_UPDATE_MATURITY,
    OP_REDEEM,
    OP_EARLY_REDEMPTION,
)

# Collaborators
from .clock import BlockClock
from .settlement import SettlementLedger
from .registry import IssuerRegistry

# Bonds
from .bond import (
    Bond,
    validate_bond_terms,
    create_bond_record,
    compute_interest_amount,
    compute_redemption_amount,
    payment_schedule,
    next_payment_height,
)

# Ledger
from .ledger import BondLedger

# Lifecycle
from .lifecycle_engine import LifecycleEngine

__all__ = [
    # Core
    'Clock', 'ValueTransfer', 'IssuerAuthorization', 'IdSequence',
    'Move', 'HoldingChange', 'OperationRecord', 'ExecuteResult', 'canonical_digest',
    'BondLedgerError', 'NotAuthorized', 'BondNotFound', 'BondAlreadyExists',
    'InsufficientFunds', 'BondSoldOut', 'InvalidAmount', 'BondNotMature',
    'BondAlreadyMature', 'PaymentAlreadyMade', 'InsufficientBalance',
    'InvalidParameters', 'NotBondOwner', 'PaymentInsufficient',
    'SYSTEM_WALLET', 'CUSTODY_WALLET', 'BPS_DENOMINATOR', 'FIRST_BOND_ID',
    'OP_CREATE_BOND', 'OP_PURCHASE', 'OP_TRANSFER', 'OP_FUND_INTEREST',
    'OP_CLAIM_INTEREST', 'OP_UPDATE_MATURITY', 'OP_REDEEM', 'OP_EARLY_REDEMPTION',
    # Collaborators
    'BlockClock', 'SettlementLedger', 'IssuerRegistry',
    # Bonds
    'Bond', 'validate_bond_terms', 'create_bond_record',
    'compute_interest_amount', 'compute_redemption_amount',
    'payment_schedule', 'next_payment_height',
    # Ledger
    'BondLedger',
    # Lifecycle
    'LifecycleEngine',
]

__version__ = '1.0.0'
