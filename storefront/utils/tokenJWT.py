# storefront/utils/tokenJWT.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from storefront.config import Settings
from storefront.errors import Unauthorized


# Generate a new JWT access token
def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# Return the email carried by a token, or raise Unauthorized
def decode_access_token(token: Optional[str], settings: Settings) -> str:
    if not token:
        raise Unauthorized("Not authenticated")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized("Could not validate credentials")
    email = payload.get("sub")
    # Ensure email is present in the token payload
    if not email:
        raise Unauthorized("Could not validate credentials")
    return email
