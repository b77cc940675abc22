"""
Database package initialization.

The package follows a modular structure:
- base: declarative base and column mixins
- connection: async engine, session factory and FastAPI dependency
- models: ORM models for orders, customers and products
"""

__all__ = []
