"""Shared FastAPI dependencies."""
from functools import lru_cache
from typing import Iterator

from fastapi import Depends

from services.relay_service import build_orchestrator
from src.config.settings import Settings, get_settings
from src.relay.orchestrator import RelayOrchestrator


@lru_cache()
def get_app_settings() -> Settings:
    """Return cached settings instance for FastAPI dependency injection."""
    return get_settings()


def get_orchestrator(settings: Settings = Depends(get_app_settings)) -> Iterator[RelayOrchestrator]:
    """Yield a relay orchestrator for one request and close its connections afterwards."""
    orchestrator = build_orchestrator(settings)
    try:
        yield orchestrator
    finally:
        orchestrator.close()
