"""
JWT Token Manager for the Crowdfund Platform

Self-issued HS256 access tokens. A token only says who the caller is;
role, verification and the active flag are read from the users table on
every request, so an admin decision takes effect without re-login.

Verification never raises: callers get a dict with ``valid`` and either
the identity fields or an ``error`` string.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


@dataclass
class TokenClaims:
    """Identity carried by an access token"""
    user_id: str
    email: Optional[str] = None


def _invalid(error: str) -> Dict[str, Any]:
    return {"valid": False, "error": error}


class JWTManager:
    """Issues and verifies platform access tokens"""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: str = "HS256",
        issuer: str = "crowdfund_platform",
        access_token_expiry: int = 86400,
    ):
        """
        Args:
            secret_key: Signing secret; a random one is generated when empty
                (tokens then die with the process)
            algorithm: PyJWT algorithm name
            issuer: ``iss`` claim written and required on verification
            access_token_expiry: Token lifetime in seconds
        """
        if not secret_key:
            logger.warning("JWT_SECRET is not set; using a per-process random secret (development only)")
        self.secret_key = secret_key or secrets.token_urlsafe(64)
        self.algorithm = algorithm
        self.issuer = issuer
        self.access_token_expiry = access_token_expiry

    def create_access_token(self, claims: TokenClaims, expires_delta: Optional[timedelta] = None) -> str:
        """Sign a token for ``claims``; ``expires_delta`` overrides the configured lifetime"""
        issued_at = datetime.now(tz=timezone.utc)
        lifetime = expires_delta if expires_delta is not None else timedelta(seconds=self.access_token_expiry)

        payload = {
            "iss": self.issuer,
            "sub": claims.user_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + lifetime).timestamp()),
            "jti": uuid.uuid4().hex,
            "type": ACCESS_TOKEN_TYPE,
        }
        if claims.email:
            payload["email"] = claims.email

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Check signature, issuer, expiry and token type.

        Returns:
            ``{"valid": True, "user_id", "email", "expires_at", "payload"}``
            or ``{"valid": False, "error"}``
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm], issuer=self.issuer)
        except jwt.ExpiredSignatureError:
            return _invalid("Token has expired")
        except jwt.InvalidIssuerError:
            return _invalid("Invalid token issuer")
        except jwt.InvalidTokenError as e:
            return _invalid(f"Invalid token: {e}")

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            return _invalid("Not an access token")
        if not payload.get("sub"):
            return _invalid("Token has no subject")

        return {
            "valid": True,
            "user_id": payload["sub"],
            "email": payload.get("email"),
            "expires_at": datetime.fromtimestamp(payload["exp"], tz=timezone.utc) if "exp" in payload else None,
            "payload": payload,
        }
