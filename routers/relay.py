"""Relay router for the Drive -> OpenAI file endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from app.dependencies import get_app_settings, get_orchestrator
from schemas.common import ErrorResponse
from schemas.relay import ConvertRequest, ConvertResponse, RelayRequestBody, RelayResponse
from services.relay_service import convert_document, relay_document
from src.config.settings import Settings
from src.relay.errors import ALLOWED_METHODS
from src.relay.orchestrator import RelayOrchestrator

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    "default": {"model": ErrorResponse, "description": "Upstream status passed through (e.g. 404, 405, 502)"},
}


@router.post("/relay", response_model=RelayResponse, responses=ERROR_RESPONSES)
async def relay_file(
    body: Optional[RelayRequestBody] = None,
    orchestrator: RelayOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
):
    """
    Copy a Drive file into the OpenAI Files API.

    Flow:
    1. Resolve a Drive token (caller-supplied or refreshed)
    2. Download the file, or export it when exportMimeType is given
    3. Upload it to OpenAI under the requested purpose

    Raw bytes are echoed back as base64 only when returnBase64 is true.
    """
    body = body or RelayRequestBody()
    result = await relay_document(orchestrator, body.to_relay_request(settings.default_purpose))
    return JSONResponse(content=RelayResponse.from_result(result).to_payload())


@router.post("/convert", response_model=ConvertResponse, responses=ERROR_RESPONSES)
async def convert_file(
    body: Optional[ConvertRequest] = None,
    orchestrator: RelayOrchestrator = Depends(get_orchestrator),
):
    """Download or export a Drive file and return it base64-encoded."""
    body = body or ConvertRequest()
    request = body.to_request()
    document = await convert_document(orchestrator, request)
    return JSONResponse(
        content=ConvertResponse.from_document(document, request.document_id or "").model_dump(by_alias=True)
    )


@router.options("/relay", include_in_schema=False)
@router.options("/convert", include_in_schema=False)
async def allowed_methods():
    """Plain OPTIONS answers with the allowed methods; other verbs get a 405 from the app."""
    return Response(status_code=204, headers={"Allow": ALLOWED_METHODS})
