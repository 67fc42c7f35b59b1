from __future__ import annotations

from base64 import b64encode
from typing import Callable, TypeVar

from loguru import logger

from src.bridge.drive_connector import DriveConnector
from src.bridge.google_auth import GoogleCredentialResolver
from src.bridge.openai_files import OpenAIFileForwarder
from src.relay.errors import (
    MissingAccessToken,
    MissingCredentialConfig,
    MissingParameters,
    RelayError,
    UnexpectedFailure,
)
from src.relay.models import (
    ConvertedDocument,
    RelayRequest,
    RelayResult,
    RelayStage,
)
from src.relay.naming import resolve_filename

T = TypeVar("T")


class RelayOrchestrator:
    """
    Runs one Drive -> OpenAI relay per call.

    Flow:
    1. Refuse every request when the ingestion key is missing
    2. Validate the document id
    3. Resolve a bearer token (caller token or refresh exchange)
    4. Look up advisory metadata (never fatal)
    5. Fetch raw or exported content
    6. Upload to the OpenAI Files API

    Any failure is raised as a ``RelayError`` stamped with the stage it
    happened in. Holds no per-request state; ``close()`` releases the
    pooled connections once the owner is done with it.
    """

    def __init__(
        self,
        resolver: GoogleCredentialResolver,
        fetcher: DriveConnector,
        forwarder: OpenAIFileForwarder,
        default_purpose: str = "assistants",
    ) -> None:
        self.resolver = resolver
        self.fetcher = fetcher
        self.forwarder = forwarder
        self.default_purpose = default_purpose

    def run(self, request: RelayRequest) -> RelayResult:
        self._stage(RelayStage.CHECKING_CONFIGURATION, self.forwarder.ensure_configured)
        document = self._retrieve(request)

        purpose = request.purpose or self.default_purpose
        ingestion = self._stage(
            RelayStage.FORWARDING,
            lambda: self.forwarder.forward(document.payload, document.filename, purpose),
        )

        logger.info(
            "Relayed document_id={} as {} ({} bytes) -> {}",
            request.document_id,
            document.filename,
            document.payload.size,
            ingestion.remote_file_id,
        )
        encoded = b64encode(document.payload.content).decode("ascii") if request.include_raw_bytes else None
        return RelayResult(
            filename=document.filename,
            mime_type=document.payload.mime_type,
            size=document.payload.size,
            remote_file_id=ingestion.remote_file_id,
            raw_response=ingestion.raw_response,
            content_base64=encoded,
        )

    def convert(self, request: RelayRequest) -> ConvertedDocument:
        """Fetch (and optionally export) a document without forwarding it."""
        document = self._retrieve(request)
        logger.info("Converted document_id={} as {}", request.document_id, document.filename)
        return document

    def _retrieve(self, request: RelayRequest) -> ConvertedDocument:
        self._stage(RelayStage.VALIDATING_INPUT, lambda: self._validate(request))
        credential = self._stage(RelayStage.RESOLVING_CREDENTIAL, lambda: self._resolve(request))
        document_id = request.document_id or ""

        metadata = self._stage(
            RelayStage.FETCHING_METADATA,
            lambda: self.fetcher.fetch_metadata(document_id, credential.token),
        )
        payload = self._stage(
            RelayStage.FETCHING_CONTENT,
            lambda: self.fetcher.fetch_content(
                document_id,
                credential.token,
                export_mime_type=request.export_mime_type,
                metadata=metadata,
            ),
        )

        filename = resolve_filename(document_id, payload.mime_type, request.desired_filename, metadata)
        return ConvertedDocument(filename=filename, payload=payload, metadata=metadata)

    def close(self) -> None:
        """Release the HTTP session and the OpenAI client held by the components."""
        self.resolver.close()
        self.fetcher.close()
        self.forwarder.close()

    @staticmethod
    def _validate(request: RelayRequest) -> None:
        if not request.document_id or not request.document_id.strip():
            raise MissingParameters("documentId is required")

    def _resolve(self, request: RelayRequest):
        try:
            return self.resolver.resolve(request.caller_token)
        except MissingCredentialConfig as exc:
            raise MissingAccessToken(exc.detail) from exc

    @staticmethod
    def _stage(stage: RelayStage, step: Callable[[], T]) -> T:
        logger.debug("Relay stage {}", stage.value)
        try:
            return step()
        except RelayError as exc:
            exc.stage = exc.stage or stage.value
            raise
        except Exception as exc:
            logger.exception("Unexpected failure during {}", stage.value)
            failure = UnexpectedFailure(str(exc))
            failure.stage = stage.value
            raise failure from exc
