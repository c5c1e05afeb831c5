"""
Trailpost Backend — Application Package Initializer
====================================================

What: Marks the `trailpost` directory as a Python package.
Why:  Enables module imports like `from trailpost.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows the same layered architecture throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Social graph, engagement, feed
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes translate HTTP into service calls. Services own every rule
    (who may follow whom, what a like means, what a feed contains) and can be
    tested against a database session without an HTTP client.
"""

__version__ = "1.0.0"
