from typing import Annotated
from fastapi import APIRouter, Depends, Request, Response
from starlette import status
from . import models
from . import service
from ..audit import AuthEventType, extract_request_info, log_auth_event
from ..config import get_settings, Settings
from ..database.core import DbSession
from ..exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidRefreshToken,
    RefreshTokenError,
    RefreshTokenReuseDetected,
    StorageUnavailable,
)
from ..rate_limiter import limiter, RATE_LIMITS
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix='/auth',
    tags=['auth']
)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=models.AuthResponse)
@limiter.limit(RATE_LIMITS["auth_register"])
def register_user(
    request: Request,
    register_user_request: models.RegisterUserRequest,
    db: DbSession,
    authority: service.TokenAuthority,
    settings: Annotated[Settings, Depends(get_settings)]
):
    try:
        session = service.register_user(db, register_user_request, authority, settings)
    except ConflictError:
        log_auth_event(
            AuthEventType.REGISTRATION_FAILURE,
            email=register_user_request.email,
            details={"reason": "email_taken"},
            success=False,
            **extract_request_info(request),
        )
        raise

    log_auth_event(
        AuthEventType.REGISTRATION_SUCCESS,
        user_id=session.user.id,
        email=session.user.email,
        **extract_request_info(request),
    )
    return session


@router.post("/login", response_model=models.AuthResponse)
@limiter.limit(RATE_LIMITS["auth_login"])
def login(
    request: Request,
    login_request: models.LoginRequest,
    db: DbSession,
    authority: service.TokenAuthority,
    settings: Annotated[Settings, Depends(get_settings)]
):
    """Password login; starts a new refresh token chain."""
    try:
        session = service.login_user(db, login_request, authority, settings)
    except AuthenticationError:
        log_auth_event(
            AuthEventType.LOGIN_FAILURE,
            email=login_request.email,
            success=False,
            **extract_request_info(request),
        )
        raise

    log_auth_event(
        AuthEventType.LOGIN_SUCCESS,
        user_id=session.user.id,
        email=session.user.email,
        **extract_request_info(request),
    )
    return session


@router.post("/refresh", response_model=models.TokenPair)
@limiter.limit(RATE_LIMITS["auth_refresh"])
def refresh_tokens(
    request: Request,
    refresh_request: models.RefreshRequest,
    authority: service.TokenAuthority,
):
    """Rotate a refresh token.

    Every failure answers 401 ``invalid_refresh_token`` so clients cannot tell
    reuse detection from expiry; the audit log keeps the real reason.
    """
    try:
        tokens = service.refresh_token_pair(refresh_request.refresh_token, authority)
    except RefreshTokenError as e:
        event = (
            AuthEventType.REFRESH_TOKEN_REUSE_DETECTED
            if isinstance(e, RefreshTokenReuseDetected)
            else AuthEventType.TOKEN_REFRESH_FAILURE
        )
        log_auth_event(
            event,
            user_id=e.user_id,
            details={"reason": e.reason},
            success=False,
            **extract_request_info(request),
        )
        raise
    except StorageUnavailable as e:
        log_auth_event(
            AuthEventType.TOKEN_REFRESH_FAILURE,
            details={"reason": "storage_unavailable"},
            success=False,
            **extract_request_info(request),
        )
        raise InvalidRefreshToken("Refresh failed") from e

    log_auth_event(AuthEventType.TOKEN_REFRESH_SUCCESS, **extract_request_info(request))
    return tokens


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMITS["auth_logout"])
def logout(
    request: Request,
    refresh_request: models.RefreshRequest,
    authority: service.TokenAuthority,
):
    """Revoke the presented refresh token. Unknown tokens are accepted silently."""
    authority.revoke(refresh_request.refresh_token)
    log_auth_event(AuthEventType.LOGOUT, **extract_request_info(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/logout-all", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMITS["auth_logout"])
def logout_everywhere(
    request: Request,
    current_user: service.CurrentUser,
    authority: service.TokenAuthority,
):
    """Revoke every refresh token of the authenticated user."""
    count = authority.revoke_all(current_user.user_id)
    log_auth_event(
        AuthEventType.LOGOUT_ALL,
        user_id=current_user.user_id,
        details={"revoked": count},
        **extract_request_info(request),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
