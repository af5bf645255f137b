"""
conftest.py - Shared pytest fixtures for bond ledger tests

Provides common fixtures used across unit, functional and conformance tests:
- Collaborators (clock, settlement ledger, issuer registry)
- A wired BondLedger with funded wallets
- Issued bonds (the reference 5% bond, an early-redeemable bond)
"""

import pytest

from bond_ledger import (
    BondLedger, BlockClock, IssuerRegistry, SettlementLedger,
    CUSTODY_WALLET,
)

from tests.fakes import ADMIN, ISSUER, HOLDERS, build_system, issue_reference_bond


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================

@pytest.fixture
def clock():
    """Clock at height 0."""
    return BlockClock(0)


@pytest.fixture
def settlement():
    """Settlement ledger with issuer, holders and custody registered and funded."""
    ledger = SettlementLedger("test", verbose=False, test_mode=True)
    for wallet in (ISSUER, CUSTODY_WALLET) + HOLDERS:
        ledger.register_wallet(wallet)
    ledger.mint(ISSUER, 1_000_000_000)
    for holder in HOLDERS:
        ledger.mint(holder, 100_000_000)
    return ledger


@pytest.fixture
def registry():
    """Registry owned by admin with the issuer authorized."""
    reg = IssuerRegistry(ADMIN, verbose=False)
    reg.set_issuer_authorization(ADMIN, ISSUER, True)
    return reg


# =============================================================================
# LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def ledger(registry, settlement, clock):
    """Quiet BondLedger over the shared collaborators."""
    return BondLedger(registry, settlement, clock, verbose=False)


@pytest.fixture
def bond_id(ledger):
    """The reference bond, no early redemption."""
    return issue_reference_bond(ledger)


@pytest.fixture
def early_bond_id(ledger):
    """The reference bond with early redemption allowed."""
    return issue_reference_bond(ledger, allow_early=True)


@pytest.fixture
def system():
    """Independent (ledger, settlement, clock, registry) tuple."""
    return build_system()
