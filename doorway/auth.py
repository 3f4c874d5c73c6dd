# doorway/auth.py
import hmac
import logging
import time
from typing import Any, Dict, Optional

import requests
from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Config
from .deps import get_config

log = logging.getLogger("uvicorn.error")

SESSION_COOKIE = "session_token"
SESSION_ALGORITHM = "HS256"
SESSION_AUDIENCE = "doorway-admin"

router = APIRouter(tags=["auth"])
security = HTTPBearer()

_warned_no_secret = False


# ──────────────────────────────────────────────────────────────────────────────
# Admin session tokens (signed cookie value)
# ──────────────────────────────────────────────────────────────────────────────
def issue_session_token(config: Config, subject: str) -> str:
    now = int(time.time())
    claims = {
        "sub": subject,
        "aud": SESSION_AUDIENCE,
        "iat": now,
        "exp": now + config.session_ttl_hours * 3600,
    }
    return jwt.encode(claims, config.session_secret, algorithm=SESSION_ALGORITHM)


def verify_session_token(config: Config, token: Optional[str]) -> Optional[str]:
    """Return the admin subject for a valid session token, else None."""
    global _warned_no_secret
    if not config.session_secret:
        if not _warned_no_secret:
            log.warning("SESSION_SECRET/ADMIN_SECRET not set: every admin session is rejected")
            _warned_no_secret = True
        return None
    if not token:
        return None
    try:
        claims = jwt.decode(
            token,
            config.session_secret,
            algorithms=[SESSION_ALGORITHM],
            audience=SESSION_AUDIENCE,
        )
    except JWTError as e:
        log.info(f"Rejected admin session: {e}")
        return None
    return claims.get("sub")


def _set_session_cookie(response: Response, config: Config, subject: str) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        issue_session_token(config, subject),
        max_age=config.session_ttl_hours * 3600,
        httponly=True,
        secure=config.session_cookie_secure,
        samesite="lax",
    )


# ──────────────────────────────────────────────────────────────────────────────
# Supabase identity bridge
# ──────────────────────────────────────────────────────────────────────────────
def _fetch_user_from_supabase(config: Config, token: str) -> Dict[str, Any]:
    """Fallback: ask Supabase who this token belongs to."""
    if not config.supabase_url:
        raise HTTPException(status_code=401, detail="Identity provider not configured")
    headers = {
        "Authorization": f"Bearer {token}",
        "apikey": config.supabase_service_role or "",
    }
    try:
        r = requests.get(f"{config.supabase_url}/auth/v1/user", headers=headers, timeout=10)
    except requests.RequestException as e:
        log.error(f"Supabase user lookup failed: {e}")
        raise HTTPException(status_code=401, detail="Could not verify token with Supabase")
    if r.status_code != 200:
        raise HTTPException(status_code=401, detail="Could not verify token with Supabase")
    data = r.json() or {}
    return data.get("user") or data


def verify_identity_token(config: Config, token: str) -> Dict[str, Any]:
    """
    Accepts Supabase access tokens:
      - HS256 (JWT secret) -> verify locally with SUPABASE_JWT_SECRET
      - anything else      -> ask Supabase /auth/v1/user
    Returns the user claims (at least "email").
    """
    try:
        alg = jwt.get_unverified_header(token).get("alg", "")
    except JWTError:
        return _fetch_user_from_supabase(config, token)

    if alg.upper() != "HS256" or not config.supabase_jwt_secret:
        return _fetch_user_from_supabase(config, token)

    try:
        claims = jwt.decode(
            token,
            config.supabase_jwt_secret,
            algorithms=["HS256"],
            options={"verify_aud": False},
            issuer=f"{config.supabase_url}/auth/v1" if config.supabase_url else None,
        )
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token (HS256): {e}")
    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Token missing subject (sub)")
    return claims


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────
LOGIN_FORM = """<!DOCTYPE html>
<html><body style="font-family:sans-serif;max-width:360px;margin:80px auto">
<h1>Admin Access</h1>
<form method="post" action="/auth/login">
  <input name="password" type="password" placeholder="Password" required>
  <button type="submit">Unlock Dashboard</button>
</form>
</body></html>
"""


@router.get("/login", response_class=HTMLResponse, include_in_schema=False)
def login_form():
    return LOGIN_FORM


@router.post("/auth/login")
def login(response: Response, password: str = Form(...), config: Config = Depends(get_config)):
    if not config.admin_secret or not config.session_secret:
        raise HTTPException(status_code=503, detail="Admin login not configured")
    if not hmac.compare_digest(password.encode(), config.admin_secret.encode()):
        log.warning("Admin login rejected: wrong password")
        raise HTTPException(status_code=401, detail="Access Denied: Wrong Password")
    _set_session_cookie(response, config, "admin")
    return {"success": True}


@router.post("/auth/session")
def bridge_session(
    response: Response,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    config: Config = Depends(get_config),
):
    """Exchange an identity-provider login for an admin session cookie."""
    if not config.session_secret:
        raise HTTPException(status_code=503, detail="Admin sessions not configured")
    user = verify_identity_token(config, credentials.credentials)
    email = (user.get("email") or "").lower()
    if not email or email not in config.admin_emails:
        log.warning(f"Admin bridge rejected for {email or 'unknown user'}")
        raise HTTPException(status_code=403, detail="Not an admin account")
    _set_session_cookie(response, config, email)
    return {"success": True, "email": email}


@router.post("/auth/logout")
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


# ──────────────────────────────────────────────────────────────────────────────
# Admin guard (runs before any admin route touches the store)
# ──────────────────────────────────────────────────────────────────────────────
class AdminAuthRequired(Exception):
    pass


def require_admin(request: Request, config: Config = Depends(get_config)) -> str:
    subject = verify_session_token(config, request.cookies.get(SESSION_COOKIE))
    if not subject:
        raise AdminAuthRequired()
    return subject
