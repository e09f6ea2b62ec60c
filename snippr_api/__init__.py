"""
Top-level package for the Snippr API.

A small service for storing code snippets, public or owned by a user,
with every snippet body encrypted at rest.  All functionality lives in
submodules under ``app``.
"""

__all__ = []
