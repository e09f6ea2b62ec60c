"""
Top-level router for version 1 of the API.

Aggregates the user and snippet routers and serves the welcome
message at ``/``.
"""

from fastapi import APIRouter

from .endpoints import snippets, users


router = APIRouter()


@router.get("/", tags=["info"])
async def welcome() -> dict:
    return {"message": "Welcome to the Snippr API!"}


router.include_router(users.router, tags=["users"])
router.include_router(snippets.router, prefix="/snippets", tags=["snippets"])
