# services/auth/routes.py
from typing import Any, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from packages.common.auth import User, get_current_user
from packages.common.deps import get_client
from packages.schemas.user import AuthUser, Credentials, Session, SignUpRequest, SignUpResult

from .service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


class OAuthStart(BaseModel):
    url: str


class RefreshRequest(BaseModel):
    refresh_token: str


def get_auth_service(client: Any = Depends(get_client)) -> AuthService:
    return AuthService(client)


@router.post("/signup", response_model=SignUpResult, status_code=status.HTTP_201_CREATED)
async def signup(body: SignUpRequest, auth: AuthService = Depends(get_auth_service)) -> SignUpResult:
    """Register; `pendingConfirmation` stays true until the email link is followed."""
    return await auth.sign_up(body.email, body.password, body.display_name)


@router.post("/signin", response_model=Session)
async def signin(body: Credentials, auth: AuthService = Depends(get_auth_service)) -> Session:
    return await auth.sign_in(body.email, body.password)


@router.post("/refresh", response_model=Session)
async def refresh(body: RefreshRequest, auth: AuthService = Depends(get_auth_service)) -> Session:
    stale = Session(access_token="", refresh_token=body.refresh_token, user=AuthUser(id=""))
    return await auth.refresh(stale)


@router.get("/oauth/{provider}", response_model=OAuthStart)
async def oauth(provider: str, redirect_to: Optional[str] = None,
                auth: AuthService = Depends(get_auth_service)) -> OAuthStart:
    return OAuthStart(url=auth.oauth_url(provider, redirect_to))


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def signout(user: User = Depends(get_current_user), auth: AuthService = Depends(get_auth_service)) -> Response:
    await auth.sign_out(user.access_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=AuthUser)
async def me(user: User = Depends(get_current_user), auth: AuthService = Depends(get_auth_service)) -> AuthUser:
    return await auth.current_user(user.access_token)
