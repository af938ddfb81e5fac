"""
FastAPI dependency injection for EduLog services.
"""

from fastapi import Request

from edulog.core.service import EduLogService


def get_service(request: Request) -> EduLogService:
    """Get EduLogService singleton from lifespan state."""
    return request.app.state.service
