"""
Per-request access decisions for snippets.

``AccessController`` ties the security pieces together.  It turns a
bearer token into a ``Caller`` (or ``None`` for an anonymous request),
logs users in, and answers "may this caller see/create this snippet",
decoding or encoding the body through the ``EncryptionEnvelope``.

Visibility rules:

* public snippets (``owner_id is None``) are readable by everyone;
* a private snippet is readable only by its owner;
* an anonymous request for a private snippet gets the same ``NotFound``
  as a request for an id that does not exist, so anonymous probing
  cannot tell the two apart;
* an authenticated caller asking for someone else's private snippet
  gets ``Forbidden``;
* listings only ever contain public snippets and the caller's own.

Nothing is remembered between requests: each one is classified afresh
from the token it carries.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool

from ..core.crypto import EncryptionEnvelope
from ..core.errors import (
    AuthenticationRequired,
    DecodeError,
    Forbidden,
    InvalidOrExpiredToken,
    NotFound,
    ValidationError,
)
from ..core.security import IssuedToken, TokenService
from ..core.store import SnippetRecord, SnippetStore, UserRecord, UserStore
from .user_service import CredentialStore


logger = logging.getLogger(__name__)

UNREADABLE_PLACEHOLDER = "[Decryption Error]"


@dataclass(frozen=True)
class Caller:
    """Identity recovered from a valid bearer token."""

    user_id: int
    email: str


@dataclass(frozen=True)
class SnippetView:
    """A snippet as returned to a caller, with the body decoded."""

    id: int
    language: str
    code: str
    owner_id: Optional[int]
    readable: bool = True


class AccessController:
    def __init__(
        self,
        users: UserStore,
        snippets: SnippetStore,
        credentials: CredentialStore,
        envelope: EncryptionEnvelope,
        tokens: TokenService,
    ) -> None:
        self.users = users
        self.snippets = snippets
        self.credentials = credentials
        self.envelope = envelope
        self.tokens = tokens

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def authenticate(self, token: Optional[str]) -> Caller:
        """Return the caller for ``token``.

        Raises ``AuthenticationRequired`` when no token is presented and
        ``InvalidOrExpiredToken`` when it does not verify or names a user
        that does not exist.
        """
        if not token:
            raise AuthenticationRequired()
        claims = self.tokens.verify(token)
        user = self.users.get(claims.user_id)
        if user is None:
            logger.debug("Token subject %s no longer exists", claims.user_id)
            raise InvalidOrExpiredToken()
        return Caller(user_id=user.id, email=user.email)

    def identify(self, token: Optional[str]) -> Optional[Caller]:
        """Like ``authenticate`` but anonymous (``None``) instead of failing."""
        if not token:
            return None
        try:
            return self.authenticate(token)
        except InvalidOrExpiredToken:
            return None

    async def register(self, email: str, password: str) -> UserRecord:
        return await run_in_threadpool(self.credentials.register, email, password)

    async def login(self, email: str, password: str) -> IssuedToken:
        """Check credentials and issue a 24 hour access token."""
        user = await run_in_threadpool(self.credentials.verify_login, email, password)
        return self.tokens.issue(user.id, user.email)

    # ------------------------------------------------------------------
    # Snippets
    # ------------------------------------------------------------------

    def _view(self, record: SnippetRecord) -> SnippetView:
        try:
            code = self.envelope.decode(record.code)
        except DecodeError:
            logger.warning("Snippet %s is unreadable", record.id)
            return SnippetView(
                id=record.id,
                language=record.language,
                code=UNREADABLE_PLACEHOLDER,
                owner_id=record.owner_id,
                readable=False,
            )
        return SnippetView(id=record.id, language=record.language, code=code, owner_id=record.owner_id)

    @staticmethod
    def _visible_to(record: SnippetRecord, caller: Optional[Caller]) -> bool:
        return record.owner_id is None or (caller is not None and record.owner_id == caller.user_id)

    def list_snippets(self, caller: Optional[Caller], language: Optional[str] = None) -> List[SnippetView]:
        """Return the public snippets plus the caller's own.

        ``language`` filters case-insensitively; unreadable snippets are
        left out of a filtered listing.
        """
        views = [self._view(record) for record in self.snippets.list() if self._visible_to(record, caller)]
        if language:
            wanted = language.lower()
            views = [view for view in views if view.readable and view.language.lower() == wanted]
        return views

    def list_my_snippets(self, caller: Optional[Caller]) -> List[SnippetView]:
        if caller is None:
            raise AuthenticationRequired()
        return [self._view(record) for record in self.snippets.list() if record.owner_id == caller.user_id]

    def get_snippet(self, caller: Optional[Caller], snippet_id: int) -> SnippetView:
        not_found = NotFound(f"Snippet with ID {snippet_id} not found.")
        record = self.snippets.get(snippet_id)
        if record is None:
            raise not_found
        if record.owner_id is not None:
            if caller is None:
                raise not_found
            if record.owner_id != caller.user_id:
                raise Forbidden("You do not have access to this snippet.")
        return self._view(record)

    def create_snippet(
        self,
        caller: Optional[Caller],
        language: str,
        code: str,
        private: bool = False,
    ) -> SnippetView:
        """Encrypt and store a new snippet.

        Private snippets are owned by the caller, so they need an
        authenticated caller; anonymous callers may only create public
        ones.
        """
        if not language or not code:
            raise ValidationError("Missing required fields: language and code")
        owner_id = None
        if private:
            if caller is None:
                raise AuthenticationRequired("Authentication required to create a private snippet")
            owner_id = caller.user_id
        record = self.snippets.create(language, self.envelope.encode(code), owner_id)
        logger.info("Snippet %s created (%s)", record.id, "private" if owner_id is not None else "public")
        return self._view(record)
