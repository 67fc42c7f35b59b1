"""Relay business logic service."""
import asyncio
from typing import Optional

import requests

from src.bridge.drive_connector import DriveConnector
from src.bridge.google_auth import GoogleCredentialResolver
from src.bridge.openai_files import OpenAIFileForwarder
from src.config.settings import Settings
from src.relay.models import ConvertedDocument, RelayRequest, RelayResult
from src.relay.orchestrator import RelayOrchestrator


def build_orchestrator(
    settings: Settings,
    session: Optional[requests.Session] = None,
    openai_client=None,
) -> RelayOrchestrator:
    """
    Wire the relay pipeline from settings.

    Args:
        settings: Process-wide configuration (read-only)
        session: HTTP session shared by the token exchange and Drive calls
        openai_client: Pre-built OpenAI client; built lazily from settings when omitted

    Returns:
        A RelayOrchestrator ready to serve requests
    """
    session = session or requests.Session()
    return RelayOrchestrator(
        resolver=GoogleCredentialResolver(settings, session=session),
        fetcher=DriveConnector(
            api_base=settings.drive_api_base,
            timeout=settings.http_timeout_seconds,
            session=session,
        ),
        forwarder=OpenAIFileForwarder(settings, client=openai_client),
        default_purpose=settings.default_purpose,
    )


async def relay_document(orchestrator: RelayOrchestrator, request: RelayRequest) -> RelayResult:
    """Run the blocking relay pipeline in the thread pool."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, orchestrator.run, request)


async def convert_document(orchestrator: RelayOrchestrator, request: RelayRequest) -> ConvertedDocument:
    """Run the fetch-only pipeline in the thread pool."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, orchestrator.convert, request)
