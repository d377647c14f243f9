# mvcmovie/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: User account and authentication model
- Role: Authorization role (many-to-many with User)
- Movie: Movie catalogue entry
"""
from .user import User, Role
from .movie import Movie
