import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Cookie, Depends, Header, HTTPException
from jose import JWTError, jwt
from passlib.context import CryptContext

import database
from schemas import Role, User, UserRole

logger = logging.getLogger("portfolio.auth")

# =====================
# Auth / Security Setup
# =====================
SECRET_KEY = os.getenv("JWT_SECRET", "super-secret-key-change")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 12
COOKIE_NAME = "access_token"

# Use pbkdf2_sha256 to avoid external bcrypt dependency issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Seed admin credentials via env; nothing is seeded unless a password is given
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@portfolio.dev")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH")


class AuthError(Exception):
    def __init__(self, status_code: int, detail: str, signed_out: bool = False):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.signed_out = signed_out


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# =====
# Users
# =====

def create_user(email: str, password: str, role: Role = Role.user) -> Dict[str, Any]:
    user = database.create_document("users", User(email=email.lower(), password_hash=hash_password(password)))
    database.create_document("user_roles", UserRole(user_id=user["id"], role=role))
    return user


def authenticate(email: str, password: str) -> Optional[Dict[str, Any]]:
    user = database.find_one("users", {"email": email.lower()})
    if not user or not verify_password(password, user["password_hash"]):
        return None
    return user


def has_role(user_id: str, role: Role = Role.admin) -> bool:
    return database.find_one("user_roles", {"user_id": user_id, "role": role.value}) is not None


def ensure_admin_user() -> None:
    """Create the env-configured admin account on first start."""
    if database.db is None or not (ADMIN_PASSWORD or ADMIN_PASSWORD_HASH):
        return
    existing = database.find_one("users", {"email": ADMIN_EMAIL.lower()})
    if existing:
        if not has_role(existing["id"]):
            database.create_document("user_roles", UserRole(user_id=existing["id"], role=Role.admin))
        return
    password_hash = ADMIN_PASSWORD_HASH or hash_password(ADMIN_PASSWORD)
    user = database.create_document("users", User(email=ADMIN_EMAIL.lower(), password_hash=password_hash))
    database.create_document("user_roles", UserRole(user_id=user["id"], role=Role.admin))
    logger.info("Seeded admin user %s", ADMIN_EMAIL)


# ========
# Sessions
# ========

def open_session(user: Dict[str, Any]) -> str:
    """Record a session row and return a token bound to it."""
    expires_at = database.now() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    session = database.create_document("sessions", {"user_id": user["id"], "expires_at": expires_at})
    return create_access_token({"sub": user["id"], "sid": session["id"]})


def end_session(session_id: str) -> bool:
    try:
        return database.delete_document("sessions", session_id) is not None
    except ValueError:
        return False


def resolve_token(token: Optional[str]) -> Dict[str, Any]:
    """Map a bearer token to its live session and user, or raise AuthError(401)."""
    if not token:
        raise AuthError(401, "Not authenticated")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise AuthError(401, "Invalid token")
    session_id = payload.get("sid")
    user_id = payload.get("sub")
    if not session_id or not user_id:
        raise AuthError(401, "Invalid token")
    try:
        session = database.get_document("sessions", session_id)
        user = database.get_document("users", user_id)
    except ValueError:
        raise AuthError(401, "Invalid token")
    if not session or session.get("user_id") != user_id or not user:
        raise AuthError(401, "Session expired")
    return {"session_id": session_id, "user": {"id": user["id"], "email": user["email"]}}


def check_admin(token: Optional[str]) -> Dict[str, Any]:
    """Session must exist and its user must hold the admin role.

    A valid session without the role is signed out before failing.
    """
    current = resolve_token(token)
    if not has_role(current["user"]["id"]):
        end_session(current["session_id"])
        logger.warning("Non-admin %s signed out of admin area", current["user"]["email"])
        raise AuthError(403, "Admin access required", signed_out=True)
    return current


def token_from_request(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1]
    return cookie_token


# ============
# Dependencies
# ============

def get_token(
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None),
) -> Optional[str]:
    return token_from_request(authorization, access_token)


def get_current_session(token: Optional[str] = Depends(get_token)) -> Dict[str, Any]:
    try:
        return resolve_token(token)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)


def get_current_admin(token: Optional[str] = Depends(get_token)) -> Dict[str, Any]:
    try:
        return check_admin(token)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
