"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from buildreg.client import BuildregClient
from buildreg.config import BuildregSettings


def get_settings(request: Request) -> BuildregSettings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_client(request: Request) -> BuildregClient:
    """Get the process-wide buildreg client from app state."""
    return request.app.state.buildreg_client


# Type aliases for cleaner dependency injection
Settings = Annotated[BuildregSettings, Depends(get_settings)]
Client = Annotated[BuildregClient, Depends(get_client)]
