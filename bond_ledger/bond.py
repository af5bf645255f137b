"""
bond.py - Bond Terms and Pure Bond Arithmetic

A Bond has:
    issuer, total_face_value, denomination, interest_rate_bps,
    payment_frequency, issue_height, maturity_height, allow_early_redemption

and lifecycle fields:
    mature, remaining_supply, redeemed_units

Interest = floor(units * denomination * rate_bps / 10000)
Redemption = units * denomination

Everything here is a pure function of its arguments.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from .core import (
    BPS_DENOMINATOR,
    InvalidParameters,
    is_int,
)


# =============================================================================
# BOND RECORD
# =============================================================================

@dataclass(frozen=True, slots=True)
class Bond:
    """An issued bond. Updates produce a new record via dataclasses.replace."""
    bond_id: int
    issuer: str
    total_face_value: int
    denomination: int
    interest_rate_bps: int
    payment_frequency: int
    issue_height: int
    maturity_height: int
    remaining_supply: int
    allow_early_redemption: bool
    mature: bool = False
    redeemed_units: int = 0

    @property
    def total_units(self) -> int:
        return self.total_face_value // self.denomination

    @property
    def sold_units(self) -> int:
        """Units that have left primary-market inventory."""
        return self.total_units - self.remaining_supply

    @property
    def outstanding_units(self) -> int:
        """Sold units whose principal has not been redeemed yet."""
        return self.sold_units - self.redeemed_units


# =============================================================================
# VALIDATION
# =============================================================================

def validate_bond_terms(
    total_face_value: int,
    denomination: int,
    interest_rate_bps: int,
    payment_frequency: int,
    maturity_offset: int,
    allow_early_redemption: bool,
) -> None:
    """
    Check issuance parameters.

    Raises:
        InvalidParameters: On the first violated constraint
    """
    numeric = {
        'total_face_value': total_face_value,
        'denomination': denomination,
        'interest_rate_bps': interest_rate_bps,
        'payment_frequency': payment_frequency,
        'maturity_offset': maturity_offset,
    }
    for name, value in numeric.items():
        if not is_int(value):
            raise InvalidParameters(f"{name} must be an integer, got {value!r}")

    if total_face_value <= 0:
        raise InvalidParameters(f"total_face_value must be positive, got {total_face_value}")
    if denomination <= 0:
        raise InvalidParameters(f"denomination must be positive, got {denomination}")
    if total_face_value % denomination != 0:
        raise InvalidParameters(
            f"total_face_value {total_face_value} is not a multiple of denomination {denomination}"
        )
    if interest_rate_bps < 0:
        raise InvalidParameters(f"interest_rate_bps must be non-negative, got {interest_rate_bps}")
    if payment_frequency <= 0:
        raise InvalidParameters(f"payment_frequency must be positive, got {payment_frequency}")
    if maturity_offset <= 0:
        raise InvalidParameters(f"maturity_offset must be positive, got {maturity_offset}")
    if not isinstance(allow_early_redemption, bool):
        raise InvalidParameters(
            f"allow_early_redemption must be a bool, got {allow_early_redemption!r}"
        )


def create_bond_record(
    bond_id: int,
    issuer: str,
    total_face_value: int,
    denomination: int,
    interest_rate_bps: int,
    payment_frequency: int,
    maturity_offset: int,
    allow_early_redemption: bool,
    issue_height: int,
) -> Bond:
    """Validate terms and build a fresh, fully unsold bond."""
    validate_bond_terms(
        total_face_value, denomination, interest_rate_bps,
        payment_frequency, maturity_offset, allow_early_redemption,
    )
    return Bond(
        bond_id=bond_id,
        issuer=issuer,
        total_face_value=total_face_value,
        denomination=denomination,
        interest_rate_bps=interest_rate_bps,
        payment_frequency=payment_frequency,
        issue_height=issue_height,
        maturity_height=issue_height + maturity_offset,
        remaining_supply=total_face_value // denomination,
        allow_early_redemption=allow_early_redemption,
    )


# =============================================================================
# PURE FUNCTIONS
# =============================================================================

def compute_interest_amount(units: int, denomination: int, interest_rate_bps: int) -> int:
    """Interest owed on a holding, rounded down."""
    return units * denomination * interest_rate_bps // BPS_DENOMINATOR


def compute_redemption_amount(units: int, denomination: int) -> int:
    """Principal owed on a holding."""
    return units * denomination


def payment_schedule(bond: Bond) -> List[int]:
    """
    Scheduled interest payment heights from issuance up to maturity.

    Informational only: claims are pooled and never consult the schedule.
    """
    return list(range(
        bond.issue_height + bond.payment_frequency,
        bond.maturity_height + 1,
        bond.payment_frequency,
    ))


def next_payment_height(bond: Bond, height: int) -> Optional[int]:
    """
    First scheduled payment strictly after height, or None.

    None once the bond is mature or when the next slot falls past maturity.
    """
    if bond.mature:
        return None
    elapsed = height - bond.issue_height
    if elapsed < 0:
        periods = 1
    else:
        periods = elapsed // bond.payment_frequency + 1
    candidate = bond.issue_height + periods * bond.payment_frequency
    if candidate > bond.maturity_height:
        return None
    return candidate
