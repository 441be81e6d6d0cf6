"""
TIL Backend — Application Package Initializer
=============================================

What: Marks the `tilapp` directory as a Python package.
Who:  Used by uvicorn (`tilapp.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Routes (JSON API + HTML website)  │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (reconciler, auth)       │  ← Business rules
    ├─────────────────────────────────────┤
    │   Repositories (entity store)       │  ← Explicit queries per entity
    ├─────────────────────────────────────┤
    │   Models & Schemas (data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (persistence)            │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
