"""GitHub API payload models.

Only the fields the federation flow reads are declared; anything else the
API returns is ignored.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class OAuthToken(BaseModel):
    """Access token returned by the OAuth token endpoint.

    Lives for the duration of a single sign-in request and is never persisted.
    """
    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "bearer"
    scope: str = ""


class ProviderEmail(BaseModel):
    """One entry of ``GET /user/emails``."""
    model_config = ConfigDict(extra="ignore")

    email: str
    primary: bool = False
    verified: Optional[bool] = None
    visibility: Optional[str] = None


class ProviderProfile(BaseModel):
    """The authenticated caller's ``GET /user`` profile."""
    model_config = ConfigDict(extra="ignore")

    id: int
    login: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
