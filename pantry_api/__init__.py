"""
Pantry API — Application Package Initializer
=============================================

What: REST backend for household food management: food catalog enriched from
      OpenFoodFacts, pantries, shopping lists, meal logs and user groups.
Who:  Imported by uvicorn (`pantry_api.main:app`), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │   Routes (API Layer)                │  ← HTTP concerns, cache declarations
    ├─────────────────────────────────────┤
    │   Response cache / invalidator      │  ← wraps route handlers
    ├─────────────────────────────────────┤
    │   Services (Business Logic)         │  ← existence / ownership / uniqueness rules
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (Persistence)            │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
