"""
FastAPI dependencies for the access controller and the caller identity.

The ``AccessController`` is built once per application by
``create_app`` and kept on ``app.state``.  Endpoints obtain it, and the
caller derived from the ``Authorization: Bearer`` header, through the
dependencies below.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..services.access_controller import AccessController, Caller


security = HTTPBearer(auto_error=False)


def get_access_controller(request: Request) -> AccessController:
    return request.app.state.access_controller


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is None:
        return None
    return credentials.credentials


def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    controller: AccessController = Depends(get_access_controller),
) -> Optional[Caller]:
    """Caller for the request, or ``None`` when anonymous.

    A missing, invalid or expired token all make the request anonymous.
    """
    return controller.identify(_token(credentials))


def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    controller: AccessController = Depends(get_access_controller),
) -> Caller:
    """Caller for the request; a 401 error response when not authenticated."""
    return controller.authenticate(_token(credentials))
