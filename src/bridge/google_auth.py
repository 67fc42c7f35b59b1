from __future__ import annotations

from typing import Optional

import requests
from loguru import logger

from src.config.settings import Settings
from src.relay.errors import CredentialExchangeFailed, MissingCredentialConfig
from src.relay.models import CredentialOrigin, ResolvedCredential

# Anything this short cannot be an OAuth access token. Drive's own 401 is
# the real authorization check.
MIN_TOKEN_LENGTH = 20


def is_plausible_token(token: Optional[str]) -> bool:
    return bool(token) and len(token) > MIN_TOKEN_LENGTH  # type: ignore[arg-type]


class GoogleCredentialResolver:
    """
    Resolves the bearer token used against Google Drive.

    - A plausible caller token is used as-is, with no network call.
    - Otherwise the standing refresh token from settings is exchanged at the
      OAuth2 token endpoint for a fresh access token.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def resolve(self, caller_token: Optional[str] = None) -> ResolvedCredential:
        if is_plausible_token(caller_token):
            logger.debug("Using caller-supplied access token")
            return ResolvedCredential(token=caller_token, origin=CredentialOrigin.CALLER_SUPPLIED)  # type: ignore[arg-type]

        if not self.settings.has_refresh_config:
            raise MissingCredentialConfig("refresh credentials are not configured")

        return ResolvedCredential(token=self._refresh_access_token(), origin=CredentialOrigin.REFRESHED)

    def _refresh_access_token(self) -> str:
        logger.debug("Exchanging refresh token at {}", self.settings.google_token_uri)
        resp = self.session.post(
            self.settings.google_token_uri,
            data={
                "client_id": self.settings.google_client_id,
                "client_secret": self.settings.google_client_secret,
                "refresh_token": self.settings.google_refresh_token,
                "grant_type": "refresh_token",
            },
            timeout=self.settings.http_timeout_seconds,
        )
        if not resp.ok:
            logger.warning("Token exchange rejected status={}", resp.status_code)
            raise CredentialExchangeFailed(resp.text, upstream_status=resp.status_code)

        try:
            payload = resp.json()
        except ValueError:
            raise CredentialExchangeFailed("token endpoint returned a non-JSON body", upstream_status=resp.status_code)

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise CredentialExchangeFailed("token endpoint response has no access_token", upstream_status=resp.status_code)
        logger.debug("Obtained refreshed access token (expires_in={})", payload.get("expires_in"))
        return token
