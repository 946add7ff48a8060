from __future__ import annotations

from fastapi import APIRouter

from ..models.session import PasswordLogin, TokenLogin
from ..services.session import SessionManager, get_session_manager

router = APIRouter()


def _describe(sm: SessionManager) -> dict:
    cred = sm.credential
    return {
        "state": sm.state,
        "reason": sm.reason,
        "mode": cred.mode if cred else None,
        "repo": cred.repo if cred else None,
        "expires_at": cred.expires_at if cred else None,
    }


@router.get("")
async def session_state():
    sm = get_session_manager()
    # touching .gallery expires a stale credential
    _ = sm.gallery
    return _describe(sm)


@router.post("/token")
async def sign_in_with_token(body: TokenLogin):
    sm = get_session_manager()
    await sm.sign_in_with_token(body.token, body.repo)
    return _describe(sm)


@router.post("/login")
async def sign_in_with_password(body: PasswordLogin):
    sm = get_session_manager()
    await sm.sign_in_with_password(body.user, body.password)
    return _describe(sm)


@router.delete("")
async def sign_out():
    sm = get_session_manager()
    await sm.logout()
    return _describe(sm)
