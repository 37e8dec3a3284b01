from __future__ import annotations

from fastapi import Request

from app.core.config import Settings


def get_settings(request: Request) -> Settings:
    """Settings object the app was built with (see app.main.create_app)."""
    return request.app.state.settings
