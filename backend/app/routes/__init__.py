# backend/app/routes/__init__.py
"""HTTP routers for the Trim API."""
