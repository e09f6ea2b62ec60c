"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables when it is instantiated.  Defaults are provided
for everything except the encryption key, which must be supplied as
``ENCRYPTION_KEY`` (64 hex characters, i.e. 32 bytes).  The key is only
validated when the application is created; see
``snippr_api.app.core.crypto.EncryptionEnvelope.from_hex``.  A malformed
``SALT_ROUNDS`` raises ``FatalConfiguration`` as soon as ``Settings`` is
built, so there is no module level instance; ``create_app`` builds one.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import FatalConfiguration


# Tokens are valid for 24 hours.  This is deliberately not configurable.
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24

# bcrypt cost factor used when ``SALT_ROUNDS`` is not set.
DEFAULT_SALT_ROUNDS = 10

# Cost factors accepted by bcrypt.
MIN_SALT_ROUNDS = 4
MAX_SALT_ROUNDS = 31

DEFAULT_SEED_DATA_PATH = str(Path(__file__).resolve().parent.parent.parent / "data" / "seed_snippets.json")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def parse_salt_rounds(value) -> int:
    """Return ``value`` as a bcrypt cost factor.

    Raises ``FatalConfiguration`` unless it is an integer between
    ``MIN_SALT_ROUNDS`` and ``MAX_SALT_ROUNDS``.
    """
    try:
        rounds = int(value)
    except (TypeError, ValueError):
        raise FatalConfiguration(f"SALT_ROUNDS must be an integer, got {value!r}.")
    if not MIN_SALT_ROUNDS <= rounds <= MAX_SALT_ROUNDS:
        raise FatalConfiguration(
            f"SALT_ROUNDS must be between {MIN_SALT_ROUNDS} and {MAX_SALT_ROUNDS}, got {rounds}."
        )
    return rounds


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "Snippr API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE") or None)

    # Prefix under which the versioned router is mounted.  Empty by
    # default so that routes live at ``/snippets``, ``/user`` etc.
    api_prefix: str = field(default_factory=lambda: os.getenv("API_PREFIX", ""))

    # Hex encoded AES-256 key.  Required; an empty or malformed value
    # prevents the application from starting.
    encryption_key: str = field(default_factory=lambda: os.getenv("ENCRYPTION_KEY", ""))

    # HMAC secret for signing access tokens.  When empty a random secret
    # is generated per process, so tokens do not survive a restart.
    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", ""))

    # bcrypt cost factor.  A value outside 4-31 prevents startup.
    salt_rounds: int = field(
        default_factory=lambda: parse_salt_rounds(os.getenv("SALT_ROUNDS", str(DEFAULT_SALT_ROUNDS)))
    )

    # JSON file with public snippets loaded at startup.  An empty string
    # disables seeding.
    seed_data_path: str = field(default_factory=lambda: os.getenv("SEED_DATA_PATH", DEFAULT_SEED_DATA_PATH))

    access_token_expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES

