"""Error taxonomy for the relay pipeline.

Every failure the caller can observe is a ``RelayError`` subclass carrying a
stable ``code``, an HTTP-equivalent ``status_code`` and an optional upstream
``detail``. Secrets (refresh tokens, API keys) must never be placed in
``detail``.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

ALLOWED_METHODS = "POST, OPTIONS"


class RelayError(Exception):
    code: str = "server_error"
    status_code: int = 500

    def __init__(self, detail: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        super().__init__(detail or self.code)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        self.stage: Optional[str] = None

    def headers(self) -> Dict[str, str]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class MissingParameters(RelayError):
    code = "missing_params"
    status_code = 400


class InvalidRequest(RelayError):
    code = "invalid_request"
    status_code = 400


class MissingAccessToken(RelayError):
    code = "missing_access_token"
    status_code = 401


class MissingCredentialConfig(RelayError):
    """Refresh path requested but client id, secret or refresh token is unset."""

    code = "missing_access_token"
    status_code = 401


class CredentialExchangeFailed(RelayError):
    code = "token_refresh_failed"
    status_code = 401

    def __init__(self, detail: Optional[str] = None, *, upstream_status: Optional[int] = None) -> None:
        status = upstream_status if upstream_status and upstream_status >= 400 else None
        super().__init__(detail, status_code=status)
        self.upstream_status = upstream_status


class DriveUnauthorized(RelayError):
    code = "drive_unauthorized"
    status_code = 401


class UpstreamFetchFailed(RelayError):
    code = "drive_error"


class ServerMisconfigured(RelayError):
    code = "server_misconfigured"
    status_code = 500


class IngestionFailed(RelayError):
    code = "openai_error"


class UnexpectedFailure(RelayError):
    code = "server_error"
    status_code = 500


class MethodNotAllowed(RelayError):
    code = "method_not_allowed"
    status_code = 405

    def __init__(self, detail: Optional[str] = None, *, allow: str = ALLOWED_METHODS) -> None:
        super().__init__(detail)
        self.allow = allow

    def headers(self) -> Dict[str, str]:
        return {"Allow": self.allow}
