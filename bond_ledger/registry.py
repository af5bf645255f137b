"""
registry.py - Issuer Authorization Registry

Maps identities to an authorization flag. Only the registry owner may
change flags or hand ownership to someone else. The bond ledger reads it
at issuance time and never writes to it.
"""

from __future__ import annotations
from typing import Dict, List

from .core import NotAuthorized


class IssuerRegistry:
    """Owner-administered set of identities allowed to issue bonds."""

    def __init__(self, owner: str, verbose: bool = True):
        if not owner or not owner.strip():
            raise ValueError("owner cannot be empty")
        self._owner = owner
        self._authorized: Dict[str, bool] = {}
        self.verbose = verbose

    @property
    def owner(self) -> str:
        return self._owner

    def is_authorized_issuer(self, identity: str) -> bool:
        return self._authorized.get(identity, False)

    def authorized_issuers(self) -> List[str]:
        """Sorted identities whose flag is currently True."""
        return sorted(i for i, flag in self._authorized.items() if flag)

    def set_issuer_authorization(self, caller: str, identity: str, authorized: bool) -> None:
        """
        Set or clear the issuer flag for an identity.

        Raises:
            NotAuthorized: If caller is not the registry owner
        """
        self._require_owner(caller)
        if not identity or not identity.strip():
            raise ValueError("identity cannot be empty")
        self._authorized[identity] = bool(authorized)
        if self.verbose:
            print(f"📝 Issuer {identity}: authorized={bool(authorized)}")

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """
        Hand the registry to a new owner.

        Raises:
            NotAuthorized: If caller is not the registry owner
        """
        self._require_owner(caller)
        if not new_owner or not new_owner.strip():
            raise ValueError("new_owner cannot be empty")
        self._owner = new_owner
        if self.verbose:
            print(f"📝 Registry owner: {caller} → {new_owner}")

    def _require_owner(self, caller: str) -> None:
        if caller != self._owner:
            raise NotAuthorized(f"{caller} is not the registry owner")
