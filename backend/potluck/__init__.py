"""
Potluck Backend: Application Package
=====================================

What: Backend for a social food-sharing app. Users register, log in, upload
      media, publish posts, author recipes and schedule meal plans.
Who:  Imported by uvicorn (potluck.main:app), Alembic and pytest.

Layering:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, ownership, transactions
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database & Object Storage (I/O)   │  ← async sessions, S3 / local files
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
