import hashlib
import hmac
from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from imaginer.core.config import get_settings
from imaginer.core.exceptions import BadRequestError

SESSION_MAX_AGE = 7 * 24 * 3600


def get_session_serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(
        settings.secret_key,
        salt="imaginer-session",
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


def create_session_cookie(payload: dict[str, Any]) -> str:
    """Sign a session payload. The auth provider's verified subject goes in `auth_id`."""
    serializer = get_session_serializer()
    return serializer.dumps(payload)


def load_session_cookie(cookie_value: str, max_age_seconds: int = SESSION_MAX_AGE) -> dict[str, Any] | None:
    serializer = get_session_serializer()
    try:
        return serializer.loads(cookie_value, max_age=max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None


def sign_webhook_payload(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_webhook_signature(payload: bytes, signature: str | None, secret: str) -> None:
    """Raise BadRequestError unless `signature` is the HMAC-SHA256 of `payload`."""
    if not secret:
        raise BadRequestError("Webhook secret not configured")
    if not signature:
        raise BadRequestError("Missing webhook signature")
    expected = sign_webhook_payload(payload, secret)
    if not hmac.compare_digest(expected, signature):
        raise BadRequestError("Invalid webhook signature")
