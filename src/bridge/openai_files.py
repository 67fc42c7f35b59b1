from __future__ import annotations

from functools import cached_property
from typing import Any, Optional

from loguru import logger
from openai import APIStatusError, OpenAI

from src.config.settings import Settings
from src.relay.errors import IngestionFailed, ServerMisconfigured
from src.relay.models import DocumentPayload, IngestionResult


class OpenAIFileForwarder:
    """Uploads relayed bytes to the OpenAI Files API."""

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None) -> None:
        self.settings = settings
        self._injected_client = client

    def close(self) -> None:
        # Injected clients belong to the caller.
        if self._injected_client is None and "client" in self.__dict__:
            self.client.close()

    def ensure_configured(self) -> None:
        if not self.settings.openai_api_key:
            raise ServerMisconfigured("OPENAI_API_KEY is not configured")

    @cached_property
    def client(self) -> Any:
        if self._injected_client is not None:
            return self._injected_client
        self.ensure_configured()
        return OpenAI(
            api_key=self.settings.openai_api_key,
            base_url=self.settings.openai_api_base or None,
            timeout=self.settings.http_timeout_seconds,
            max_retries=0,
        )

    def forward(self, payload: DocumentPayload, filename: str, purpose: str) -> IngestionResult:
        """
        Send ``payload`` as multipart form data with ``purpose`` and ``file`` fields.

        Returns the assigned file id together with the full response body.
        """
        self.ensure_configured()
        logger.debug(
            "Uploading to OpenAI files filename={} size={} purpose={}",
            filename,
            payload.size,
            purpose,
        )
        try:
            created = self.client.files.create(
                file=(filename, payload.content, payload.mime_type),
                purpose=purpose,
            )
        except APIStatusError as exc:
            logger.warning("OpenAI file upload rejected status={}", exc.status_code)
            raise IngestionFailed(exc.response.text, status_code=exc.status_code) from exc

        raw = created.model_dump() if hasattr(created, "model_dump") else dict(created)
        file_id = raw.get("id") or getattr(created, "id", None)
        if not file_id:
            raise IngestionFailed("upload response has no file id", status_code=502)
        logger.info("Uploaded {} to OpenAI as {}", filename, file_id)
        return IngestionResult(remote_file_id=file_id, raw_response=raw)
