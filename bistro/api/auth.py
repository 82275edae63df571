"""
Bistro API — Token bootstrap route
"""
from fastapi import APIRouter

from bistro.core.config import get_settings
from bistro.core.security import create_access_token
from bistro.schemas.user import TokenRequest, TokenResponse

settings = get_settings()
router = APIRouter(tags=["auth"])


@router.post("/jwt", response_model=TokenResponse)
async def issue_token(payload: TokenRequest):
    """Issue a short-lived access token for the signed-in client's email."""
    claims = {"email": payload.email}
    if payload.name:
        claims["name"] = payload.name

    return TokenResponse(
        token=create_access_token(claims),
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
