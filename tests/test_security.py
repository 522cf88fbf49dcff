import base64
import hashlib
import hmac

from insights.core.security import generate_webhook_signature, verify_webhook_signature

SECRET = "whsec_test"
BODY = b'{"event":"batch.scores","data":{"profiles":[]}}'


class TestWebhookSignature:

    def test_hex_signature(self):
        signature = generate_webhook_signature(BODY, SECRET)
        assert verify_webhook_signature(signature, BODY, SECRET)
        assert verify_webhook_signature(signature.upper(), BODY, SECRET)

    def test_base64_signature(self):
        digest = hmac.new(SECRET.encode(), BODY, hashlib.sha256).digest()
        assert verify_webhook_signature(base64.b64encode(digest).decode(), BODY, SECRET)

    def test_mismatch(self):
        signature = generate_webhook_signature(BODY, SECRET)
        assert not verify_webhook_signature(signature, BODY + b" ", SECRET)
        assert not verify_webhook_signature(signature, BODY, "other")
        assert not verify_webhook_signature("", BODY, SECRET)
