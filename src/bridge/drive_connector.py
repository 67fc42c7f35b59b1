from __future__ import annotations

from typing import Dict, Optional
from urllib.parse import quote

import requests
from loguru import logger

from src.relay.errors import DriveUnauthorized, UpstreamFetchFailed
from src.relay.models import DocumentMetadata, DocumentPayload
from src.relay.naming import resolve_mime_type


class DriveConnector:
    """
    Google Drive bridge over the v3 REST API.

    - Auth via a bearer token resolved by the caller.
    - Metadata lookup is advisory and never raises.
    - Content is fetched either raw (alt=media) or through the export
      endpoint when a target MIME type is given.
    """

    def __init__(
        self,
        api_base: str = "https://www.googleapis.com/drive/v3",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def _file_url(self, document_id: str) -> str:
        return f"{self.api_base}/files/{quote(document_id, safe='')}"

    @staticmethod
    def _headers(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def fetch_metadata(self, document_id: str, token: str) -> DocumentMetadata:
        """Return name and mimeType for a file, or an empty value on any failure."""
        logger.debug("Fetching Drive metadata document_id={}", document_id)
        try:
            resp = self.session.get(
                self._file_url(document_id),
                params={"fields": "name,mimeType", "supportsAllDrives": "true"},
                headers=self._headers(token),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Drive metadata request failed document_id={}: {}", document_id, exc)
            return DocumentMetadata.empty()

        if not resp.ok:
            logger.warning("Drive metadata lookup returned status={} document_id={}", resp.status_code, document_id)
            return DocumentMetadata.empty()

        try:
            body = resp.json()
        except ValueError:
            logger.warning("Drive metadata body is not JSON document_id={}", document_id)
            return DocumentMetadata.empty()
        if not isinstance(body, dict):
            return DocumentMetadata.empty()

        return DocumentMetadata(name=body.get("name") or None, mime_type=body.get("mimeType") or None)

    def fetch_content(
        self,
        document_id: str,
        token: str,
        export_mime_type: Optional[str] = None,
        metadata: Optional[DocumentMetadata] = None,
    ) -> DocumentPayload:
        """Fetch file bytes, exporting to ``export_mime_type`` when given."""
        if export_mime_type:
            url = f"{self._file_url(document_id)}/export"
            params = {"mimeType": export_mime_type}
        else:
            url = self._file_url(document_id)
            params = {"alt": "media", "supportsAllDrives": "true"}

        logger.debug(
            "Fetching Drive content document_id={} mode={}",
            document_id,
            "export" if export_mime_type else "media",
        )
        resp = self.session.get(url, params=params, headers=self._headers(token), timeout=self.timeout)

        if resp.status_code == 401:
            raise DriveUnauthorized(resp.text)
        if not resp.ok:
            raise UpstreamFetchFailed(resp.text, status_code=resp.status_code)

        data = resp.content
        mime_type = resolve_mime_type(
            export_mime_type,
            resp.headers.get("Content-Type"),
            metadata or DocumentMetadata.empty(),
        )
        logger.debug("Retrieved Drive content length={} bytes mime_type={}", len(data), mime_type)
        return DocumentPayload(content=data, mime_type=mime_type)
