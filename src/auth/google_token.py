# src/auth/google_token.py
import logging
from typing import Protocol

from pydantic import BaseModel, StrictBool, StrictStr, ValidationError

# Google Auth Libraries
from google.oauth2 import id_token
from google.auth.transport import requests as google_requests
from google.auth.exceptions import GoogleAuthError

from src.core.errors import InvalidToken

logger = logging.getLogger(__name__)


class GoogleClaims(BaseModel):
    """Claims we rely on from a verified Google ID token."""
    sub: StrictStr
    email: StrictStr
    email_verified: StrictBool
    name: str = ""
    picture: str = ""
    exp: float = 0


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> GoogleClaims: ...


class GoogleIdentityVerifier:
    """
    Verifies Google ID tokens against our OAuth client id.

    Signature and expiry checks are delegated to google-auth; issuer, audience
    and email verification are checked here. Every failure is raised as
    InvalidToken with the cause attached for logging.
    """

    def __init__(self, client_id: str, issuer: str = "https://accounts.google.com"):
        if not client_id:
            raise ValueError("client_id is required to verify Google ID tokens")
        self.client_id = client_id
        self.issuer = issuer
        self._request = google_requests.Request()

    def verify(self, token: str) -> GoogleClaims:
        if not token or not isinstance(token, str):
            raise InvalidToken("Invalid credential.", detail="empty token")

        try:
            payload = id_token.verify_oauth2_token(token, self._request, self.client_id)
        except ValueError as e:
            # Malformed token, bad signature, expired, wrong audience
            logger.error(f"ID token verification failed: {e}")
            raise InvalidToken("Invalid credential.", detail=str(e)) from e
        except GoogleAuthError as e:
            # Certificates could not be fetched, etc.
            logger.error(f"Could not reach Google to verify ID token: {e}", exc_info=True)
            raise InvalidToken("Invalid credential.", detail=str(e)) from e

        return self.check_claims(payload)

    def check_claims(self, payload: dict) -> GoogleClaims:
        """Applies our own checks to an already signature-verified payload."""
        if payload.get("iss") != self.issuer:
            raise InvalidToken("Invalid credential.", detail=f"invalid token issuer: {payload.get('iss')}")

        if payload.get("aud") != self.client_id:
            raise InvalidToken("Invalid credential.", detail=f"invalid audience: {payload.get('aud')}")

        try:
            claims = GoogleClaims.model_validate(payload)
        except ValidationError as e:
            raise InvalidToken("Invalid credential.", detail=f"missing or malformed claims: {e}") from e

        if not claims.email_verified:
            raise InvalidToken("Invalid credential.", detail="email not verified")

        logger.info(f"ID token verified for user: {claims.email}")
        return claims
