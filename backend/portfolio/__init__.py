"""
Portfolio Backend — Application Package
=========================================

What: The contact-info service of a personal portfolio site.
Who:  Imported by uvicorn (`portfolio.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Routes + Dependencies (API)       │  ← HTTP, auth, envelopes
    ├─────────────────────────────────────┤
    │   Services (Business Logic)         │  ← store, history, merge rules
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (Persistence)            │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
