"""
Service layer.

Each service encapsulates business logic and works against the store
abstractions in ``core.store`` so the API handlers never touch storage
or cryptography directly.
"""
