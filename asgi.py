"""
asgi.py -- Application assembly for CoverDesk.

The single import target for ASGI servers. Routers for other portal areas
(policies, claims, payments) are included here rather than in api/main.py.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app

__all__ = ["app"]
