"""
Repository package for data access layers.

Repositories wrap an `AsyncSession` and return plain records so the services
in `app.services` stay free of SQLAlchemy. Tests substitute in-memory fakes
through FastAPI dependency overrides (see `app.dependencies.services`).
"""
