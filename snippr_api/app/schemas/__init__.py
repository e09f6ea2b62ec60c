"""
Pydantic schema definitions for API payloads.

Request and response bodies for users, tokens and snippets.  Schemas
are kept apart from the store records so that encrypted envelopes and
password hashes never leak into an API response by accident.
"""
