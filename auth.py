"""
Single-admin authentication.

There is exactly one identity: the administrator configured through the
environment. Tokens are HS256 JWTs carrying ``{id, email, role}`` and an
expiry; validity is signature plus expiry, nothing is stored server-side.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from jose import JWTError, jwt
from loguru import logger
from passlib.context import CryptContext
from pydantic import ValidationError as ModelValidationError

from config import Settings
from exceptions import AuthenticationError
from schemas import Claims

# pbkdf2_sha256 keeps passlib free of the bcrypt backend
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ADMIN_ID = "admin"
ADMIN_ROLE = "admin"


class AuthGate:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.admin_email = settings.ADMIN_EMAIL
        # Support a precomputed hash; otherwise hash the configured password once
        self.admin_password_hash = settings.ADMIN_PASSWORD_HASH or pwd_context.hash(settings.ADMIN_PASSWORD)
        if settings.weak_secret:
            logger.warning(
                "Using a weak JWT_SECRET is a security risk. Set a JWT_SECRET of at least 32 characters."
            )

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except ValueError:
            logger.error("ADMIN_PASSWORD_HASH is not a valid pbkdf2_sha256 hash")
            return False

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(days=self.settings.ACCESS_TOKEN_EXPIRE_DAYS)
        )
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.settings.JWT_SECRET, algorithm=self.settings.JWT_ALGORITHM)

    def login(self, email: str, password: str) -> str:
        """
        Check the admin credentials and issue a token.

        Raises:
            AuthenticationError: On any mismatch; the message never says which
                field was wrong
        """
        email_ok = email == self.admin_email
        password_ok = self.verify_password(password, self.admin_password_hash)
        if not (email_ok and password_ok):
            logger.warning("Rejected admin login attempt")
            raise AuthenticationError("Invalid email or password")

        logger.info("Admin logged in")
        return self.create_access_token({"id": ADMIN_ID, "email": self.admin_email, "role": ADMIN_ROLE})

    def verify(self, token: str) -> Optional[Claims]:
        """Decode a token; None when the signature or expiry check fails."""
        try:
            payload = jwt.decode(token, self.settings.JWT_SECRET, algorithms=[self.settings.JWT_ALGORITHM])
            claims = Claims(**payload)
        except (JWTError, ModelValidationError, TypeError) as e:
            logger.debug(f"Token verification failed: {e}")
            return None
        if claims.role != ADMIN_ROLE:
            return None
        return claims

    def claims_from_header(self, authorization: Optional[str]) -> Optional[Claims]:
        if not authorization or not authorization.startswith("Bearer "):
            return None
        token = authorization.split(" ", 1)[1].strip()
        if not token:
            return None
        return self.verify(token)


# ============
# Dependencies
# ============

def get_auth(request: Request) -> AuthGate:
    return request.app.state.auth


def get_optional_admin(
    authorization: Optional[str] = Header(None),
    auth: AuthGate = Depends(get_auth),
) -> Optional[Claims]:
    """Caller claims for read paths; anonymous callers get None."""
    return auth.claims_from_header(authorization)


def get_current_admin(claims: Optional[Claims] = Depends(get_optional_admin)) -> Claims:
    if claims is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return claims
