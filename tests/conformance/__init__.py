"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the bond ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Unit, fund and settlement-currency conservation
2. atomicity.py - Failed operations leave no trace
3. idempotency.py - Maturity is a one-way, once-only transition
4. determinism.py - Identical operation sequences give identical state

These tests use hypothesis for property-based testing.
"""
