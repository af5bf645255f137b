"""
Example: A tokenized bond from issuance to redemption.

Walks the reference 5% bond through every stage: issuance by an authorized
issuer, a primary sale, a secondary transfer, pooled interest funding and
claims, the permissionless maturity trigger, and redemption at face value.
Every applied operation prints its audit record.
"""

from bond_ledger import (
    BondLedger, BlockClock, IssuerRegistry, SettlementLedger, LifecycleEngine,
    BondLedgerError, CUSTODY_WALLET, SYSTEM_WALLET,
)


def main():
    print("=" * 80)
    print("BOND LEDGER - Issuance to Redemption Example")
    print("=" * 80)
    print()

    clock = BlockClock(0)
    settlement = SettlementLedger("ustx", verbose=True)
    registry = IssuerRegistry("admin", verbose=True)

    for wallet in ("treasury", "investor_a", "investor_b", CUSTODY_WALLET):
        settlement.register_wallet(wallet)
    settlement.mint("treasury", 1_000_000_000)
    settlement.mint("investor_a", 50_000_000)

    registry.set_issuer_authorization("admin", "treasury", True)
    ledger = BondLedger(registry, settlement, clock, verbose=True)

    print()
    print("Step 1: Issuance")
    print("-" * 80)
    print("1000 units of 1_000_000 at 500 bps, paying every 144 blocks, maturing in 52_560.")
    print()
    bond_id = ledger.create_bond("treasury", 1_000_000_000, 1_000_000, 500, 144, 52_560, False)

    print()
    print("Step 2: Primary Sale and Secondary Transfer")
    print("-" * 80)
    ledger.purchase_bonds("investor_a", bond_id, 5)
    ledger.transfer("investor_a", bond_id, 2, "investor_b")
    print(f"Positions: {ledger.get_positions(bond_id)}")
    print(f"Remaining supply: {ledger.get_bond(bond_id).remaining_supply}")
    print()

    print("Step 3: Interest")
    print("-" * 80)
    print("The issuer funds 100_000; investor_a's claim of 150_000 is refused.")
    print()
    ledger.fund_interest_payments("treasury", bond_id, 100_000)
    try:
        ledger.claim_interest("investor_a", bond_id)
    except BondLedgerError as e:
        print(f"Claim refused (code {e.code})")
    ledger.fund_interest_payments("treasury", bond_id, 100_000)
    ledger.claim_interest("investor_a", bond_id)
    print(f"Interest fund: {ledger.get_interest_payment_fund(bond_id):,}")
    print(f"Next payment height: {ledger.get_next_interest_payment(bond_id)}")
    print()

    print("Step 4: Maturity and Redemption")
    print("-" * 80)
    engine = LifecycleEngine(ledger, clock)
    engine.step(52_560)
    for holder in ("investor_a", "investor_b"):
        paid = ledger.redeem_bonds(holder, bond_id)
        print(f"{holder} redeemed for {paid:,}")
    print()

    print("=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print()
    for wallet in ("treasury", "investor_a", "investor_b", CUSTODY_WALLET, SYSTEM_WALLET):
        print(f"  {wallet:<12} {settlement.get_balance(wallet):>16,}")
    print()
    print(f"Bond conservation: {ledger.verify_conservation()['valid']}")
    print(f"Currency conservation: {settlement.verify_conservation()['valid']}")
    print(f"State digest: {ledger.state_digest()}")


if __name__ == "__main__":
    main()
