from datetime import datetime, timedelta
from jose import jwt, ExpiredSignatureError, JWTError

from config.env import JWT_SECRET, JWT_ALGORITHM, ACCESS_TOKEN_DAYS
from utils.errors import UnauthorizedError


def _signing_key() -> str:
    secret = (JWT_SECRET or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def create_access_token(claims: dict, days: int = ACCESS_TOKEN_DAYS) -> str:
    issued = datetime.utcnow()
    return jwt.encode(
        {**claims, "iat": issued, "exp": issued + timedelta(days=days)},
        _signing_key(),
        algorithm=JWT_ALGORITHM,
    )


def decode_token(token: str) -> dict:
    """
    Verify signature and expiry. Failures surface as 401s with the
    message the client should show before sending the user to login.
    """
    try:
        return jwt.decode(token, _signing_key(), algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Token expired. Please login again.")
    except JWTError:
        raise UnauthorizedError("Invalid token. Please login again.")
