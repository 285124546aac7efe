from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, ExpiredSignatureError, jwt

from depmatrix.core.config import settings
from depmatrix.core.exceptions import InvalidTokenError, TokenExpiredError


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a session token for this service.

    ``data`` carries ``sub`` (user ID), ``role`` and ``upstream_token`` (the
    token issued by the Auth Service, forwarded on Persistence Service calls).
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode session token.

    Raises:
        TokenExpiredError: the ``exp`` claim has passed
        InvalidTokenError: bad signature or malformed token
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()
