from typing import Any, Dict

from jose import JWTError, jwt

from tovalley_chat.core.config import settings


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a bearer token issued by the account service. Raises JWTError."""
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    if not payload.get("sub"):
        raise JWTError("Token has no subject")
    return payload
