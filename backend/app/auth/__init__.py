# app/auth/__init__.py
"""
Authentication modules for the job board.

This package contains:
- identity.py: Canonical authenticated identity model attached to requests
- google.py: Google ID token verification for federated sign-in
"""
from app.auth.identity import Identity

__all__ = ["Identity"]
