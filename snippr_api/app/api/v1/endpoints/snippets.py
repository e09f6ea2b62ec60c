"""
Snippet endpoints for API v1.

Listing and reading work anonymously but only ever return public
snippets plus, for an authenticated caller, the caller's own.  A
snippet can be created anonymously (it is then public) or, with a
bearer token, as a private snippet owned by the caller.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from snippr_api.app.core.dependencies import get_access_controller, get_current_caller, get_optional_caller
from snippr_api.app.schemas.snippet import SnippetCreate, SnippetRead
from snippr_api.app.services.access_controller import AccessController, Caller


router = APIRouter()


@router.get("", response_model=List[SnippetRead])
async def list_snippets(
    lang: Optional[str] = Query(None, description="Only snippets in this language (case-insensitive)"),
    caller: Optional[Caller] = Depends(get_optional_caller),
    controller: AccessController = Depends(get_access_controller),
) -> List[SnippetRead]:
    """Return every snippet visible to the caller."""
    return [SnippetRead.model_validate(view) for view in controller.list_snippets(caller, lang)]


@router.get("/mine", response_model=List[SnippetRead])
async def list_my_snippets(
    caller: Caller = Depends(get_current_caller),
    controller: AccessController = Depends(get_access_controller),
) -> List[SnippetRead]:
    """Return only the caller's own snippets (requires authentication)."""
    return [SnippetRead.model_validate(view) for view in controller.list_my_snippets(caller)]


@router.get("/{snippet_id}", response_model=SnippetRead)
async def get_snippet(
    snippet_id: int,
    caller: Optional[Caller] = Depends(get_optional_caller),
    controller: AccessController = Depends(get_access_controller),
) -> SnippetRead:
    """Retrieve a single snippet by ID.

    Returns HTTP 404 if the snippet does not exist or is private and
    the request is anonymous, and HTTP 403 if it belongs to another
    user.
    """
    return SnippetRead.model_validate(controller.get_snippet(caller, snippet_id))


@router.post("", response_model=SnippetRead, status_code=status.HTTP_201_CREATED)
async def create_snippet(
    snippet_in: SnippetCreate,
    caller: Optional[Caller] = Depends(get_optional_caller),
    controller: AccessController = Depends(get_access_controller),
) -> SnippetRead:
    """Create a snippet; its body is encrypted before it is stored."""
    view = controller.create_snippet(caller, snippet_in.language, snippet_in.code, private=snippet_in.private)
    return SnippetRead.model_validate(view)
