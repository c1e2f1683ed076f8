from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from dataclasses import dataclass
from dotenv import load_dotenv
import os
import logging

# Load environment variables
load_dotenv()
logger = logging.getLogger(__name__)

# Identity provider settings. For RS256 the key is the provider's PEM public key.
IDENTITY_JWT_KEY = os.getenv("IDENTITY_JWT_KEY", "dev-identity-secret")
IDENTITY_JWT_ALGORITHM = os.getenv("IDENTITY_JWT_ALGORITHM", "HS256")
IDENTITY_JWT_ISSUER = os.getenv("IDENTITY_JWT_ISSUER") or None


@dataclass(frozen=True)
class Identity:
    """Verified subject handed over by the identity provider after sign-in"""
    subject: str
    email: Optional[str] = None


# Token decoding
def decode_identity_token(token: str) -> Optional[Identity]:
    """Verify a provider-issued session token and extract the subject and email claims"""
    options = {"verify_aud": False}
    try:
        payload = jwt.decode(
            token,
            IDENTITY_JWT_KEY,
            algorithms=[IDENTITY_JWT_ALGORITHM],
            issuer=IDENTITY_JWT_ISSUER,
            options=options,
        )
    except JWTError as e:
        logger.warning(f"Rejected identity token: {str(e)}")
        return None

    subject = payload.get("sub")
    if not subject:
        return None
    return Identity(subject=str(subject), email=payload.get("email"))


# Token creation for local development and tests (HS* algorithms only)
def create_identity_token(subject: str, email: Optional[str] = None, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    to_encode = {"sub": subject, "exp": expire}
    if email:
        to_encode["email"] = email
    if IDENTITY_JWT_ISSUER:
        to_encode["iss"] = IDENTITY_JWT_ISSUER
    return jwt.encode(to_encode, IDENTITY_JWT_KEY, algorithm=IDENTITY_JWT_ALGORITHM)
