"""
PagerDuty Webhook Signature Verification

Architectural Intent:
- Proves an inbound PagerDuty v3 webhook was sent by PagerDuty
- Pure function over the raw request bytes, the signature header and a secret

Domain Rules:
- The HMAC is computed over the exact, unparsed body bytes
- The header may carry several comma-separated "v1=<hex>" candidates
  (PagerDuty sends more than one during secret rotation); any match verifies
- Fails closed: absent header, computation error, or no match -> False
"""

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-PagerDuty-Signature"
SIGNATURE_VERSION = "v1="


def compute_signature(raw_body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}{digest}"


def verify_signature(
    raw_body: bytes, signature_header: Optional[str], secret: str
) -> bool:
    if not signature_header:
        return False
    try:
        expected = compute_signature(raw_body, secret).encode("ascii")
        candidates = [
            sig.strip().encode("utf-8") for sig in signature_header.split(",")
        ]
        return any(
            hmac.compare_digest(candidate, expected) for candidate in candidates
        )
    except Exception as e:
        logger.error("Signature verification error: %s", e)
        return False
