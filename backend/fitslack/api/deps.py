"""
API dependencies.

Services are read from app.state so tests can inject their own container.
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fitslack.config import Settings
from fitslack.features.verification import VerificationService
from fitslack.services import Services
from fitslack.shared.exceptions import AuthenticationError, AuthorizationError


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(services: Services = Depends(get_services)) -> Settings:
    return services.settings


async def get_async_db(
    services: Services = Depends(get_services),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with services.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_verification_service(
    services: Services = Depends(get_services),
    db: AsyncSession = Depends(get_async_db),
) -> VerificationService:
    return services.verification(db)


async def require_admin(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Bearer-token guard for admin routes.

    Open when ADMIN_TOKEN is not set. Errors from admin routes are JSON.
    """
    request.state.json_errors = True

    if not settings.admin_token:
        return
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Missing or invalid Authorization header")
    if authorization[len("Bearer "):] != settings.admin_token:
        raise AuthorizationError("Invalid admin token")


async def read_body(request: Request) -> dict:
    """Form posts from the browser pages, JSON from scripts."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}
