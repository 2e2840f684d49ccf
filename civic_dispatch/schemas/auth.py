# File: civic_dispatch/schemas/auth.py

from pydantic import BaseModel, ConfigDict, Field

class LoginIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    official_id: str = Field(alias="officialId", min_length=1, max_length=120)
    password: str = Field(min_length=1, max_length=512)

class TokenOut(BaseModel):
    access_token: str
    token_type: str
    expires_in: int

class Identity(BaseModel):
    """What the identity collaborator hands the core: who is acting, nothing more."""
    model_config = ConfigDict(populate_by_name=True)

    authority_key: str = Field(alias="authorityKey")
    authority_name: str = Field(alias="authorityName")
    authority_phone: str = Field(alias="authorityPhone")
