import hashlib
import hmac
import logging
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import get_settings


logger = logging.getLogger(__name__)


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(get_settings().session_secret, salt="finanza-session")


def passcode_stamp(passcode: str) -> str:
    secret = get_settings().session_secret.encode("utf-8")
    return hmac.new(secret, passcode.encode("utf-8"), hashlib.sha256).hexdigest()[:16]


def generate_session_token(username: str, passcode: str) -> str:
    """Sign a session for ``username``; the issue time travels inside the token.

    The passcode stamp ties the token to the current passcode, so changing it
    invalidates every session issued before.
    """
    return _serializer().dumps({"u": username, "p": passcode_stamp(passcode)})


def validate_session_token(
    token: str, username: str, passcode: str, max_age_hours: Optional[int] = None
) -> bool:
    if max_age_hours is None:
        max_age_hours = get_settings().session_hours
    try:
        data = _serializer().loads(token, max_age=max_age_hours * 3600)
    except SignatureExpired:
        logger.info(f"session_expired: user={username}")
        return False
    except BadSignature:
        return False
    if not isinstance(data, dict) or data.get("u") != username:
        return False
    return hmac.compare_digest(str(data.get("p", "")), passcode_stamp(passcode))
