"""
Snippetbox: Application Package
===============================

What: Server-rendered web application for sharing short text snippets.
Who:  Imported by uvicorn (snippetbox.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Middleware (session, CSRF, auth)  │  ← per-request state
    ├─────────────────────────────────────┤
    │       Routes + Jinja2 templates     │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (snippets, users, store) │  ← persistence and hashing
    ├─────────────────────────────────────┤
    │     Models (SQLAlchemy ORM)         │  ← table mapping
    └─────────────────────────────────────┘

    Every collaborator is constructed once in snippetbox.dependencies.build_application()
    and handed to create_app(); nothing reads a module-level service singleton.
"""

__version__ = "1.0.0"
