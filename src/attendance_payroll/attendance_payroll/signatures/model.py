from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SignatureType, VerificationMethod
from ..geo.policy import GeoPoint


@dataclass(frozen=True)
class Signature:
    """Domain entity: a hand-drawn signature on one payroll, by one user.

    ``content_hash`` is a SHA-256 over image, user, payroll and signing time
    and can be recomputed at any time to detect tampering.
    """

    signature_id: Optional[int]
    user_id: int
    payroll_id: int
    signature_type: SignatureType
    image: str
    content_hash: str
    signed_at: datetime
    device_id: Optional[str] = None
    ip_address: Optional[str] = None
    location: Optional[GeoPoint] = None
    is_verified: bool = False
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    verification_method: Optional[VerificationMethod] = None

    def to_dict(self, *, include_image: bool = False) -> dict:
        data = {
            "signature_id": self.signature_id,
            "user_id": self.user_id,
            "payroll_id": self.payroll_id,
            "signature_type": self.signature_type.value,
            "content_hash": self.content_hash,
            "signed_at": self.signed_at.isoformat(),
            "device_id": self.device_id,
            "ip_address": self.ip_address,
            "location": self.location.to_dict() if self.location else None,
            "is_verified": self.is_verified,
            "verified_by": self.verified_by,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
            "verification_method": self.verification_method.value if self.verification_method else None,
        }
        if include_image:
            data["image"] = self.image
        return data
