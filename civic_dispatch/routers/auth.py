# File: civic_dispatch/routers/auth.py

from fastapi import APIRouter, Depends, HTTPException
from civic_dispatch.schemas.auth import LoginIn, TokenOut, Identity
from civic_dispatch.core.security import check_credentials, make_token, get_current_authority
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/login", response_model=TokenOut)
def login(body: LoginIn):
    authority_key = check_credentials(body.official_id, body.password)
    if not authority_key:
        logger.info(f"Failed login for {body.official_id!r}")
        raise HTTPException(status_code=401, detail="Invalid credentials. Please try again.")
    return make_token(authority_key)

@router.get("/me", response_model=Identity, response_model_by_alias=True)
def me(identity: Identity = Depends(get_current_authority)):
    return identity
