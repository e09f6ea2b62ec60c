"""
Main entrypoint for the Snippr API.

``create_app`` validates configuration, builds the security components
(credential store, encryption envelope, token service and the access
controller that combines them), loads the seed snippets and assembles
the FastAPI application.  It is used as an application factory, e.g.::

    uvicorn snippr_api.app.main:create_app --factory

A malformed ``ENCRYPTION_KEY`` or ``SALT_ROUNDS`` raises
``FatalConfiguration`` from ``create_app``; the application must not be
served in that case.
"""

import logging
import secrets
from typing import Optional

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import Settings, parse_salt_rounds
from .core.crypto import EncryptionEnvelope
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging
from .core.security import TokenService
from .core.store import InMemorySnippetStore, InMemoryUserStore
from .services.access_controller import AccessController
from .services.seed_service import load_seed_data
from .services.user_service import CredentialStore


logger = logging.getLogger(__name__)


def build_access_controller(settings: Settings) -> AccessController:
    """Build the access controller and its collaborators from ``settings``.

    Raises ``FatalConfiguration`` for a missing or malformed encryption
    key or a bcrypt cost factor outside the supported range.
    """
    envelope = EncryptionEnvelope.from_hex(settings.encryption_key)
    salt_rounds = parse_salt_rounds(settings.salt_rounds)

    secret = settings.secret_key
    if not secret:
        secret = secrets.token_urlsafe(48)
        logger.warning(
            "SECRET_KEY is not set; generated a signing secret for this process. "
            "Tokens will not survive a restart."
        )
    tokens = TokenService(secret, lifetime_seconds=settings.access_token_expire_minutes * 60)

    users = InMemoryUserStore()
    snippets = InMemorySnippetStore()
    credentials = CredentialStore(users, salt_rounds=salt_rounds)
    load_seed_data(snippets, envelope, settings.seed_data_path)
    logger.info("User store initialized. Next user ID will be %d.", users.next_id)

    return AccessController(
        users=users,
        snippets=snippets,
        credentials=credentials,
        envelope=envelope,
        tokens=tokens,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Defaults to settings read from the
        environment when the application is created.

    Returns
    -------
    FastAPI
        A configured FastAPI instance whose access controller is
        available as ``app.state.access_controller``.
    """
    settings = settings or Settings()
    setup_logging(settings.log_level, settings.log_file)

    controller = build_access_controller(settings)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.settings = settings
    app.state.access_controller = controller
    register_exception_handlers(app)
    app.include_router(v1_router, prefix=settings.api_prefix)
    return app
