"""
JWT session tokens.

The token lives in an httpOnly cookie; API clients may send the same
token as a Bearer header instead.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from travelcrm.config import settings

ALGORITHM = "HS256"
TOKEN_TYPE = "access"
COOKIE_NAME = "access_token"


def create_access_token(
    user_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign a session token for a user.

    Args:
        user_id: User's database ID
        role: Role at login time (manager/dataentry/sales)
        expires_delta: Custom lifetime, defaults to jwt_expire_hours

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expire_hours))

    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": expire,
        "type": TOKEN_TYPE,
        "iat": now,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Decode a session token.

    Returns {"user_id", "role"} or None when the token is invalid,
    expired or of the wrong type. The role is informational only; every
    permission check reads the role from the stored user.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        return None

    try:
        return {"user_id": int(user_id), "role": role}
    except ValueError:
        return None


def get_token_from_request(request) -> Optional[str]:
    """Token from the session cookie, falling back to the Authorization header."""
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None
