"""
Business logic for user credentials.

``CredentialStore`` registers users and checks logins on top of a
``UserStore``.  Passwords are hashed with bcrypt (see
``core.security``) at the configured cost factor; the raw password is
never stored or logged.

Login failures are deliberately uniform: an unknown email and a wrong
password both raise the same ``InvalidCredentials`` error, and both
paths run one bcrypt check so they take comparable time.
"""

import logging

from ..core.config import DEFAULT_SALT_ROUNDS
from ..core.errors import DuplicateEmail, InvalidCredentials, ValidationError
from ..core.security import BCRYPT_MAX_PASSWORD_BYTES, hash_password, password_too_long, verify_password
from ..core.store import UserRecord, UserStore


logger = logging.getLogger(__name__)


class CredentialStore:
    """Register users and verify their passwords."""

    def __init__(self, users: UserStore, salt_rounds: int = DEFAULT_SALT_ROUNDS) -> None:
        self.users = users
        self.salt_rounds = salt_rounds
        # Checked against when the email is unknown.
        self._dummy_hash = hash_password("snippr-dummy-password", rounds=salt_rounds)

    def register(self, email: str, password: str) -> UserRecord:
        """Create a new user.

        Raises ``ValidationError`` for a blank email or password or a
        password longer than bcrypt accepts, and ``DuplicateEmail`` when
        an account exists for the same email ignoring case.  This call
        is CPU heavy; run it off the event loop.
        """
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Missing required fields: email and password")
        if password_too_long(password):
            raise ValidationError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes long")
        # Fail fast before paying for a hash; the store re-checks atomically.
        if self.users.find_by_email(email) is not None:
            logger.info("Registration rejected: email already registered")
            raise DuplicateEmail()
        hashed = hash_password(password, rounds=self.salt_rounds)
        user = self.users.create(email, hashed)
        logger.info("User created: id=%s email=%s", user.id, user.email)
        return user

    def verify_login(self, email: str, password: str) -> UserRecord:
        """Return the user for a correct email/password pair.

        Raises ``InvalidCredentials`` otherwise, without saying which
        half was wrong.
        """
        password = password or ""
        user = self.users.find_by_email((email or "").strip())
        # bcrypt would compare only the first 72 bytes of a longer password,
        # and no stored hash was made from one.
        too_long = password_too_long(password)
        if user is None or too_long:
            verify_password("" if too_long else password, self._dummy_hash)
            logger.info("Failed login attempt")
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise InvalidCredentials()
        logger.info("User %s logged in", user.id)
        return user
