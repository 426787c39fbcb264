from __future__ import annotations

import hashlib
import hmac
from datetime import datetime

from .model import Signature


def compute_hash(image: str, user_id: int, payroll_id: int, signed_at: datetime) -> str:
    material = "|".join([image, str(user_id), str(payroll_id), signed_at.isoformat()])
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def verify_integrity(signature: Signature) -> bool:
    expected = compute_hash(signature.image, signature.user_id, signature.payroll_id, signature.signed_at)
    return hmac.compare_digest(expected, signature.content_hash)
