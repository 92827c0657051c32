"""
asgi.py -- Application entry point for ASGI servers.

Run with:  uvicorn asgi:app --port 8080
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
