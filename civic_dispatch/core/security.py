# civic_dispatch/core/security.py
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import hmac, time, jwt
from civic_dispatch.core.config import settings
from civic_dispatch.schemas.auth import Identity
from civic_dispatch.services.dispatch import get_authority

ALGO = "HS256"
ACCESS_TTL = 8 * 3600
bearer = HTTPBearer(auto_error=False)

# Static official logins; each maps to one authority.
CREDENTIALS = {
    "admin_roads": {"password": "pass123", "authority": "roads"},
    "admin_water": {"password": "pass123", "authority": "water"},
    "admin_sanitation": {"password": "pass123", "authority": "sanitation"},
}

def check_credentials(official_id: str, password: str) -> Optional[str]:
    """Authority key for a matching login, else None."""
    entry = CREDENTIALS.get(official_id)
    if not entry:
        return None
    if not hmac.compare_digest(entry["password"].encode(), password.encode()):
        return None
    return entry["authority"]

def make_token(authority_key: str) -> dict:
    now = int(time.time())
    payload = {"sub": authority_key, "iat": now, "exp": now + ACCESS_TTL}
    return {
        "access_token": jwt.encode(payload, settings.jwt_secret, algorithm=ALGO),
        "token_type": "bearer",
        "expires_in": ACCESS_TTL,
    }

def _decode_token(creds: Optional[HTTPAuthorizationCredentials]) -> dict:
    if not creds:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return jwt.decode(creds.credentials, settings.jwt_secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

def get_current_authority(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Identity:
    payload = _decode_token(creds)
    authority = get_authority(payload.get("sub") or "")
    if not authority:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown authority")
    return Identity(
        authority_key=authority.key,
        authority_name=authority.name,
        authority_phone=authority.phone,
    )
