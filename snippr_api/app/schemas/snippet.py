"""
Pydantic schemas for code snippets.

``SnippetCreate`` is what clients submit.  ``SnippetRead`` is the
decoded view returned to a caller allowed to see the snippet; ``code``
is plaintext there, or the ``[Decryption Error]`` placeholder with
``readable`` set to False when the stored envelope cannot be decoded.
"""

from typing import Optional

from pydantic import BaseModel, Field


class SnippetCreate(BaseModel):
    """Schema for submitting a new snippet."""

    language: str = Field(..., min_length=1, examples=["python"])
    code: str = Field(..., min_length=1, examples=["print('hi')"])
    private: bool = Field(
        False,
        description="Store the snippet as owned by the caller.  Requires a bearer token.",
    )


class SnippetRead(BaseModel):
    """Schema for reading a snippet."""

    id: int
    language: str
    code: str
    owner_id: Optional[int] = None
    readable: bool = True

    model_config = {
        "from_attributes": True,
    }
