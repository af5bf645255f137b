"""
lifecycle_engine.py - Lifecycle Engine

Drives the permissionless maturity trigger as block height advances.

Execution order each step():
1. Advance the clock
2. Find every non-mature bond whose maturity height has been reached
3. Call update_bond_maturity() for each, in ascending bond id order

The ledger's operation log is the audit trail - the engine keeps no state
of its own beyond its configuration.
"""

from __future__ import annotations
from typing import List

from .clock import BlockClock
from .ledger import BondLedger


class LifecycleEngine:
    """
    Keeper that moves bonds from active to mature.

    The maturity transition needs no privileges, so the engine submits it
    under its own keeper identity.
    """

    def __init__(self, ledger: BondLedger, clock: BlockClock, keeper: str = "keeper"):
        """
        Initialize lifecycle engine.

        Args:
            ledger: The bond ledger to operate on
            clock: The clock the ledger reads (advanced by step())
            keeper: Identity used as caller for maturity updates
        """
        self.ledger = ledger
        self.clock = clock
        self.keeper = keeper
        self.verbose = ledger.verbose

    def pending_maturities(self) -> List[int]:
        """Bond ids that are due to mature at the current height."""
        height = self.clock.current_height()
        due = []
        for bond_id in self.ledger.list_bonds():
            bond = self.ledger.get_bond(bond_id)
            if not bond.mature and height >= bond.maturity_height:
                due.append(bond_id)
        return due

    def step(self, height: int) -> List[int]:
        """
        Advance to height and mature every bond that is due.

        Returns:
            Ids of the bonds matured during this step
        """
        self.clock.advance_to(height)
        matured = []
        for bond_id in self.pending_maturities():
            if self.verbose:
                print(f"[LIFECYCLE] Maturing bond {bond_id} at height {height}")
            self.ledger.update_bond_maturity(self.keeper, bond_id)
            matured.append(bond_id)
        return matured

    def run(self, heights: List[int]) -> List[int]:
        """
        Run the engine through a sequence of heights.

        Returns:
            All bond ids matured, in the order they matured
        """
        matured: List[int] = []
        for height in heights:
            matured.extend(self.step(height))
        return matured
