"""Relay request/response models."""
from base64 import b64encode
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from src.relay.models import ConvertedDocument, RelayRequest, RelayResult


class ConvertRequest(BaseModel):
    """Request model for the fetch-only convert endpoint.

    ``fileId`` and ``exportMime`` are accepted as aliases of ``documentId``
    and ``exportMimeType``.
    """
    model_config = ConfigDict(populate_by_name=True)

    document_id: Optional[str] = Field(None, validation_alias=AliasChoices("documentId", "fileId", "document_id"))
    access_token: Optional[str] = Field(None, validation_alias=AliasChoices("accessToken", "access_token"))
    export_mime_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("exportMimeType", "exportMime", "export_mime_type")
    )
    filename: Optional[str] = None

    def to_request(self, **extra: Any) -> RelayRequest:
        return RelayRequest(
            document_id=self.document_id,
            caller_token=self.access_token,
            export_mime_type=self.export_mime_type,
            desired_filename=self.filename,
            **extra,
        )


class RelayRequestBody(ConvertRequest):
    """Request model for the relay endpoint."""
    purpose: Optional[str] = None
    return_base64: bool = Field(False, validation_alias=AliasChoices("returnBase64", "return_base64"))

    def to_relay_request(self, default_purpose: str) -> RelayRequest:
        return self.to_request(
            purpose=self.purpose or default_purpose,
            include_raw_bytes=self.return_base64,
        )


class RelayResponse(BaseModel):
    """Response model for a successful relay."""
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    filename: str
    mime_type: str = Field(..., alias="mimeType")
    size: int
    remote_file_id: str = Field(..., alias="remoteFileId")
    upstream: Dict[str, Any]
    base64: Optional[str] = None

    @classmethod
    def from_result(cls, result: RelayResult) -> "RelayResponse":
        return cls(
            filename=result.filename,
            mime_type=result.mime_type,
            size=result.size,
            remote_file_id=result.remote_file_id,
            upstream=result.raw_response,
            base64=result.content_base64,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, omitting base64 unless it was requested."""
        exclude = {"base64"} if self.base64 is None else None
        return self.model_dump(by_alias=True, exclude=exclude)


class ConvertResponse(BaseModel):
    """Response model for the fetch-only convert endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    filename: str
    name: str
    mime_type: str = Field(..., alias="mimeType")
    size: int
    base64: str

    @classmethod
    def from_document(cls, document: ConvertedDocument, document_id: str) -> "ConvertResponse":
        return cls(
            filename=document.filename,
            name=document.metadata.name or document_id,
            mime_type=document.payload.mime_type,
            size=document.payload.size,
            base64=b64encode(document.payload.content).decode("ascii"),
        )
