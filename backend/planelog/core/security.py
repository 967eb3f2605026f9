from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from planelog.core.config import settings
from planelog.core.errors import InvalidToken, TokenExpired, Unauthenticated

# CryptContext handles password hashing using bcrypt
# bcrypt generates a salt per hash and stores it inside the hash string
# rounds is the work factor (10 by default, lowered in tests for speed)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# Stored in the "type" claim - an access token is never accepted as a refresh token
# and vice versa, even though both are signed with the same secret
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    # Constant-time comparison prevents timing attacks
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    # Same password produces different hashes because of the per-hash salt
    return pwd_context.hash(password)


def _create_token(email: str, token_type: str, expires_delta: timedelta) -> str:
    # Use timezone.utc instead of utcnow() (deprecated in Python 3.12+)
    expire = datetime.now(timezone.utc) + expires_delta
    # email is the caller's identity; exp is the JWT standard expiration claim
    to_encode = {"email": email, "type": token_type, "exp": expire}
    # Algorithm must match in decode - changing this breaks all existing tokens
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token carrying the email claim"""
    # Short lifetime limits damage if the token leaks
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _create_token(email, ACCESS_TOKEN_TYPE, expires_delta)


def create_refresh_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed refresh token carrying the email claim"""
    # Only used to mint access tokens; never rotated or revoked server-side
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _create_token(email, REFRESH_TOKEN_TYPE, expires_delta)


def decode_token(token: Optional[str], token_type: str) -> str:
    """
    Verify a token of the given type and return its email claim.

    Pure function, no I/O. Raises:
    - Unauthenticated when no token is presented
    - TokenExpired (with the original expiry) when the signature is good but exp has passed
    - InvalidToken for every other failure (signature, payload, wrong token type)
    """
    # No token at all is a different failure from a bad token - 401 vs 403
    if not token:
        raise Unauthenticated()

    try:
        # Verifies signature and expiration in one call
        payload = jwt.decode(token, settings.SECRET_KEY,
                             algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        # Decode again without the exp check to read the expiry for the client
        # Signature is still checked here, so a forged expired token stays invalid
        try:
            payload = jwt.decode(token, settings.SECRET_KEY,
                                 algorithms=[settings.ALGORITHM],
                                 options={"verify_exp": False})
        except JWTError:
            raise InvalidToken()
        raise TokenExpired(datetime.fromtimestamp(payload["exp"], tz=timezone.utc))
    except JWTError:
        # Tampered, wrong secret, or not a JWT at all
        raise InvalidToken()

    # A validly signed token must still carry an email and the expected type
    email = payload.get("email")
    if not isinstance(email, str) or not email or payload.get("type") != token_type:
        raise InvalidToken()
    return email


def verify_access_token(token: Optional[str]) -> str:
    """Gate for authenticated operations - returns the caller's email"""
    return decode_token(token, ACCESS_TOKEN_TYPE)


def verify_refresh_token(token: Optional[str]) -> str:
    """Check a refresh token - returns the email to issue a new access token for"""
    return decode_token(token, REFRESH_TOKEN_TYPE)
