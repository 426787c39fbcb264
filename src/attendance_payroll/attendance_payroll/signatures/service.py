from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import SignatureType, VerificationMethod
from ..core.exceptions import DuplicateSignature, SignatureNotFound, WrongSigner
from ..employees.repository import EmployeeDirectory
from ..employees.service import get_employee, require_admin
from ..geo.policy import GeoPoint
from ..payroll import lifecycle
from ..payroll.model import PayrollRecord
from ..payroll.service import PayrollService
from .hashing import compute_hash, verify_integrity
from .image import decode_signature_image, qr_png
from .model import Signature
from .repository import SignatureRepository

logger = logging.getLogger("attendance_payroll.signatures")


class SignatureService:
    def __init__(
        self,
        signatures: SignatureRepository,
        payrolls: PayrollService,
        employees: EmployeeDirectory,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._signatures = signatures
        self._payrolls = payrolls
        self._employees = employees
        self._clock = clock

    def _check_signer(self, payroll: PayrollRecord, user_id: int, signature_type: SignatureType) -> None:
        signer = get_employee(self._employees, user_id)
        if signature_type == SignatureType.EMPLOYEE:
            if user_id != payroll.employee_id:
                raise WrongSigner("You can only sign your own salary slip")
            return
        if not signer.is_admin:
            raise WrongSigner("Admin signature must come from an admin")
        if user_id == payroll.employee_id:
            raise WrongSigner("Admins cannot countersign their own payroll")

    def add_signature(
        self,
        payroll_id: int,
        *,
        user_id: int,
        signature_type: SignatureType | str,
        image: str,
        device_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        location: Optional[GeoPoint] = None,
    ) -> Signature:
        signature_type = SignatureType(signature_type)
        payroll = self._payrolls.get(payroll_id)
        lifecycle.check_signable(payroll, signature_type)
        self._check_signer(payroll, user_id, signature_type)
        decode_signature_image(image)

        if self._signatures.find(user_id=user_id, payroll_id=payroll_id, signature_type=signature_type):
            raise DuplicateSignature()

        # MySQL DATETIME keeps whole seconds; the hash must survive a round trip
        signed_at = self._clock().replace(microsecond=0)
        signature = self._signatures.create(
            Signature(
                signature_id=None,
                user_id=user_id,
                payroll_id=payroll_id,
                signature_type=signature_type,
                image=image,
                content_hash=compute_hash(image, user_id, payroll_id, signed_at),
                signed_at=signed_at,
                device_id=device_id,
                ip_address=ip_address,
                location=location,
            )
        )

        try:
            self._payrolls.attach_signature(
                payroll_id,
                signature_type=signature_type,
                signature_id=signature.signature_id,
                actor_id=user_id,
            )
        except Exception:
            # payroll moved on (locked, signed concurrently); drop the orphan
            self._signatures.discard(signature.signature_id)
            raise

        logger.info(
            "payroll %s signed by %s (%s)",
            payroll_id,
            user_id,
            signature_type.value,
            extra={"payroll_id": payroll_id, "signature_id": signature.signature_id},
        )
        return signature

    def get(self, signature_id: int) -> Signature:
        signature = self._signatures.get_by_id(signature_id)
        if not signature:
            raise SignatureNotFound()
        return signature

    def list_for_payroll(self, payroll_id: int) -> Sequence[Signature]:
        self._payrolls.get(payroll_id)
        return self._signatures.list_for_payroll(payroll_id)

    def verify_signature(self, signature_id: int) -> dict:
        signature = self.get(signature_id)
        valid = verify_integrity(signature)
        if not valid:
            logger.warning("signature %s failed integrity check", signature_id, extra={"signature_id": signature_id})
        return {
            "signature_id": signature_id,
            "is_valid": valid,
            "is_verified": signature.is_verified,
            "verified_at": signature.verified_at.isoformat() if signature.verified_at else None,
        }

    def manual_verify(self, signature_id: int, *, actor_id: int) -> Signature:
        require_admin(self._employees, actor_id, action="verify signatures")
        signature = self.get(signature_id)
        if signature.is_verified:
            return signature
        verified = replace(
            signature,
            is_verified=True,
            verified_by=actor_id,
            verified_at=self._clock(),
            verification_method=VerificationMethod.MANUAL,
        )
        return self._signatures.mark_verified(verified)

    def qr_code(self, signature_id: int) -> bytes:
        """PNG QR code carrying the signature hash, for printed salary slips."""
        signature = self.get(signature_id)
        return qr_png(f"signature:{signature.signature_id}:{signature.content_hash}")
