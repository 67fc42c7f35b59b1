from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class CredentialOrigin(str, Enum):
    CALLER_SUPPLIED = "caller_supplied"
    REFRESHED = "refreshed"


class RelayStage(str, Enum):
    CHECKING_CONFIGURATION = "checking_configuration"
    VALIDATING_INPUT = "validating_input"
    RESOLVING_CREDENTIAL = "resolving_credential"
    FETCHING_METADATA = "fetching_metadata"
    FETCHING_CONTENT = "fetching_content"
    FORWARDING = "forwarding"
    SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class RelayRequest:
    document_id: Optional[str]
    caller_token: Optional[str] = None
    export_mime_type: Optional[str] = None
    desired_filename: Optional[str] = None
    purpose: str = "assistants"
    include_raw_bytes: bool = False


@dataclass(frozen=True)
class ResolvedCredential:
    token: str
    origin: CredentialOrigin

    def __repr__(self) -> str:
        # Keep tokens out of logs and tracebacks.
        return f"ResolvedCredential(origin={self.origin.value}, token=<{len(self.token)} chars>)"


@dataclass(frozen=True)
class DocumentMetadata:
    """Advisory Drive metadata. ``empty()`` stands in when the lookup fails."""

    name: Optional[str] = None
    mime_type: Optional[str] = None

    @classmethod
    def empty(cls) -> "DocumentMetadata":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.mime_type is None


@dataclass(frozen=True)
class DocumentPayload:
    content: bytes = field(repr=False)
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class IngestionResult:
    remote_file_id: str
    raw_response: Dict[str, Any]


@dataclass(frozen=True)
class ConvertedDocument:
    filename: str
    payload: DocumentPayload
    metadata: DocumentMetadata


@dataclass(frozen=True)
class RelayResult:
    filename: str
    mime_type: str
    size: int
    remote_file_id: str
    raw_response: Dict[str, Any]
    content_base64: Optional[str] = None
