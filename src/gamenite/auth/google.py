"""Google sign-in (OAuth 2.0 authorization-code flow)."""

import hashlib
import hmac
import secrets
from urllib.parse import urlencode

import httpx

from gamenite.logging_config import get_logger

logger = get_logger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
STATE_COOKIE = "gamenite_oauth_state"


class OAuthError(Exception):
    pass


def make_state(secret: str) -> str:
    nonce = secrets.token_urlsafe(16)
    sig = hmac.new(secret.encode(), nonce.encode(), hashlib.sha256).hexdigest()
    return f"{nonce}.{sig}"


def verify_state(secret: str, state: str | None, expected: str | None) -> bool:
    """The callback state must match the cookie copy and carry a valid signature."""
    if not state or not expected or not hmac.compare_digest(state, expected):
        return False
    nonce, _, sig = state.partition(".")
    good = hmac.new(secret.encode(), nonce.encode(), hashlib.sha256).hexdigest()
    return hmac.compare_digest(sig, good)


class GoogleOAuth:
    def __init__(self, client_id: str, client_secret: str, redirect_uri: str,
                 transport: httpx.BaseTransport | None = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._transport = transport

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "state": state,
            "prompt": "select_account",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def fetch_profile(self, code: str) -> dict:
        """Exchange an authorization code and return the user's email and name."""
        with httpx.Client(transport=self._transport) as client:
            try:
                token_resp = client.post(TOKEN_URL, data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                })
                token_resp.raise_for_status()
                access_token = token_resp.json().get("access_token")
                if not access_token:
                    raise OAuthError("Token response had no access_token")
                info_resp = client.get(
                    USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"},
                )
                info_resp.raise_for_status()
                info = info_resp.json()
            except httpx.HTTPError as e:
                logger.warning("google_oauth_failed", error=str(e))
                raise OAuthError(f"Google sign-in failed: {e}") from e

        if not info.get("email") or not info.get("email_verified", False):
            raise OAuthError("Google account has no verified email")
        return {"email": info["email"], "name": info.get("name", "")}
