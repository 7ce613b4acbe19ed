import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import Header
from jose import JWTError, jwt
from passlib.context import CryptContext

from errors import AuthError

load_dotenv()

logger = logging.getLogger(__name__)

# JWT Config
SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change")
ALGORITHM = "HS256"

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


# Passwords

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unknown or corrupt hash format
        return False


# Tokens

def issue_token(user_id: str) -> str:
    """Sign a token for `user_id`.

    Tokens carry no `exp` claim and stay valid until JWT_SECRET is rotated.
    """
    return jwt.encode({"user": {"id": str(user_id)}}, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: Optional[str]) -> str:
    if not token:
        raise AuthError(AuthError.MISSING)
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise AuthError(AuthError.INVALID)
    user = payload.get("user")
    user_id = user.get("id") if isinstance(user, dict) else None
    if not user_id:
        raise AuthError(AuthError.INVALID)
    return str(user_id)


# Dependency to get current user id

def current_user_id(
    auth_token: Optional[str] = Header(default=None, alias="auth-token"),
    authorization: Optional[str] = Header(default=None),
) -> str:
    token = auth_token
    if not token and authorization and authorization.startswith("Bearer "):
        token = authorization.split(" ", 1)[1].strip()
    try:
        return verify_token(token)
    except AuthError as exc:
        logger.warning("Rejected request token (%s)", exc.kind)
        raise
