import base64
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)


def generate_webhook_signature(payload: bytes, secret: str) -> str:
    """
    Generate the hex HMAC-SHA256 signature Sahha attaches to webhook deliveries
    """
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_webhook_signature(signature: str, payload: bytes, secret: str) -> bool:
    """
    Verify an X-Signature header against the raw request body.

    Both hex and base64 encodings of the digest are accepted since deliveries
    have been observed in either form.
    """
    if not signature:
        return False

    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    expected_hex = digest.hex()
    expected_b64 = base64.b64encode(digest).decode("ascii")

    if hmac.compare_digest(signature.lower().encode("utf-8"), expected_hex.encode("ascii")):
        return True
    if hmac.compare_digest(signature.encode("utf-8"), expected_b64.encode("ascii")):
        return True

    logger.debug(f"[Security] Signature mismatch (length={len(signature)})")
    return False
