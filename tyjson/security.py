import hashlib
import hmac
import re
import time
from typing import Mapping, Optional

from tyjson.errors import AuthError, PermissionDeniedError, ValidationError
from tyjson.settings import RestrictionConfig, Settings, TokenConfig, settings

# Endpoint that skips the token gate; it has its own admin check.
TOKEN_EXEMPT_ENDPOINT = "ttdf"

UID_COOKIE = "__typecho_uid"
AUTH_CODE_COOKIE = "__typecho_authCode"

# Lower number means more privileges.
GROUP_LEVELS = {
    "administrator": 0,
    "editor": 1,
    "contributor": 2,
    "subscriber": 3,
    "visitor": 4,
}

SIGNATURE_TOLERANCE_SECONDS = 300
CSRF_ACTION = "ai-summary-generate"

BEARER_RE = re.compile(r"Bearer\s+(.*)$", re.I)


def get_settings() -> Settings:
    """Small wrapper to allow dependency overrides in tests."""
    return settings


def md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def validate_token(authorization: Optional[str], token: TokenConfig) -> None:
    if not token.enabled:
        return

    header = authorization or ""
    if token.format == "Bearer":
        match = BEARER_RE.search(header)
        if not match:
            raise AuthError("Missing or invalid Bearer token")
        if match.group(1).strip() != token.value:
            raise PermissionDeniedError("Invalid token")
    elif token.format == "Token":
        if header.strip() != token.value:
            raise PermissionDeniedError("Invalid token")
    else:
        raise ValidationError("Unsupported token format")


def check_restrictions(method: str, endpoint: str, restrictions: RestrictionConfig) -> None:
    if restrictions.forbids(method, endpoint):
        raise PermissionDeniedError("Access Forbidden")


def resolve_user(cookies: Mapping[str, str], users_repo):
    """Logged-in CMS user from the login cookies, or None."""
    uid = cookies.get(UID_COOKIE)
    auth_code = cookies.get(AUTH_CODE_COOKIE)
    if not uid or not auth_code or not uid.isdigit():
        return None
    user = users_repo.get(int(uid))
    if user is None or not user.authCode:
        return None
    if not hmac.compare_digest(user.authCode.encode(), auth_code.encode()):
        return None
    return user


def user_passes(user, group: str) -> bool:
    if user is None:
        return False
    level = GROUP_LEVELS.get(user.group or "visitor", GROUP_LEVELS["visitor"])
    return level <= GROUP_LEVELS[group]


def require_admin(user) -> None:
    if not user_passes(user, "administrator"):
        raise AuthError("Unauthorized")


def csrf_token(secret: str, action: str = CSRF_ACTION) -> str:
    return md5(f"{secret}&{action}")


def sign_request(cid: int, timestamp: int, secret: str) -> str:
    return md5(f"{cid}{timestamp}{md5(secret)}")


def verify_signature(
    cid: int,
    timestamp: int,
    signature: str,
    secret: str,
    now: Optional[float] = None,
) -> None:
    now = time.time() if now is None else now
    if abs(now - timestamp) > SIGNATURE_TOLERANCE_SECONDS:
        raise PermissionDeniedError("Request expired")
    expected = sign_request(cid, timestamp, secret)
    if not hmac.compare_digest((signature or "").encode(), expected.encode()):
        raise PermissionDeniedError("Invalid signature")
