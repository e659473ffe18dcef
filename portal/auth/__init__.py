"""
TaxDesk — Authentication & RBAC
JWT tokens, password hashing, role levels and tenant context.
"""
from datetime import datetime, timedelta
from fastapi import Request, HTTPException

from portal.config import (
    JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRY_HOURS, ROLE_LEVELS, DEFAULT_ROLE
)

# ============================================================
# PASSWORD HASHING
# ============================================================
import bcrypt

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()

def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except (ValueError, AttributeError):
        return False

# ============================================================
# JWT
# ============================================================
import jwt as pyjwt

def create_jwt(user: dict) -> str:
    payload = {
        "sub": user["id"], "email": user["email"], "name": user["name"],
        "role": user["role"], "tenantId": user.get("tenantId"),
        "exp": datetime.utcnow() + timedelta(hours=JWT_EXPIRY_HOURS),
        "iat": datetime.utcnow()
    }
    return pyjwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)

def decode_jwt(token: str) -> dict:
    try:
        return pyjwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(401, "Token expired")
    except pyjwt.InvalidTokenError:
        raise HTTPException(401, "Invalid token")

# ============================================================
# USER STORE
# ============================================================
def find_user_by_email(email: str) -> dict:
    from portal.db import get_db
    email = (email or "").strip().lower()
    for u in get_db().get("users", []):
        if (u.get("email") or "").lower() == email:
            return u
    return None

def authenticate(email: str, password: str) -> dict:
    """Return the user for valid credentials, else None."""
    user = find_user_by_email(email)
    if not user or not user.get("passwordHash"):
        return None
    if not verify_password(password, user["passwordHash"]):
        return None
    if user.get("isActive") is False or user.get("status") == "SUSPENDED":
        return None
    return user

def public_user(user: dict) -> dict:
    """User record without credential fields."""
    return {k: v for k, v in user.items() if k != "passwordHash"}

# ============================================================
# REQUEST HELPERS
# ============================================================
def _user_from_request(request: Request) -> dict:
    """Extract user from JWT in Authorization header. Returns empty dict if no auth."""
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        try:
            payload = decode_jwt(auth[7:])
        except HTTPException:
            return {}
        return {"id": payload["sub"], "email": payload["email"],
                "name": payload["name"], "role": payload["role"],
                "tenantId": payload.get("tenantId"), "authenticated": True}
    return {}

async def get_current_user(request: Request) -> dict:
    """Dependency: require authenticated user with a tenant context."""
    user = _user_from_request(request)
    if not user:
        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer "):
            raise HTTPException(401, "Invalid or expired token")
        raise HTTPException(401, "Authentication required")
    if not user.get("tenantId"):
        raise HTTPException(401, "Unauthorized")
    return user

def role_level(role: str) -> int:
    return ROLE_LEVELS.get(role, ROLE_LEVELS[DEFAULT_ROLE])["level"]

# ============================================================
# RBAC DECORATOR
# ============================================================
def require_role(min_level: int):
    """Dependency: require minimum role level."""
    async def checker(request: Request):
        user = await get_current_user(request)
        if role_level(user["role"]) < min_level:
            raise HTTPException(403, f"Requires role level {min_level}+. Your role: {user['role']}")
        return user
    return checker
