from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import SignatureType
from .model import Signature


class SignatureRepository(Protocol):
    def get_by_id(self, signature_id: int) -> Optional[Signature]:
        raise NotImplementedError

    def find(self, *, user_id: int, payroll_id: int, signature_type: SignatureType) -> Optional[Signature]:
        raise NotImplementedError

    def create(self, signature: Signature) -> Signature:
        """Must raise DuplicateSignature on (user_id, payroll_id, signature_type) conflict."""

        raise NotImplementedError

    def mark_verified(self, signature: Signature) -> Signature:
        raise NotImplementedError

    def discard(self, signature_id: int) -> None:
        """Remove a signature that was never attached to its payroll."""

        raise NotImplementedError

    def list_for_payroll(self, payroll_id: int) -> Sequence[Signature]:
        raise NotImplementedError
