# app/__init__.py
"""
Lesson invoicing API.

Run with:
    uvicorn app:app --reload
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
