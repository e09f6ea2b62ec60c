"""
Application package initializer.

``core`` holds configuration, logging, errors and the security
primitives (encryption envelope, tokens, password hashing, stores);
``services`` holds the credential store, the access controller and
seed loading; ``api`` exposes them over HTTP.  Build an application
with ``snippr_api.app.main.create_app``.
"""
