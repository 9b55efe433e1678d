"""
Top-level package for the Events API.

All functionality lives in submodules under ``app``; the ASGI
application is ``events_api.app.main:app``.
"""

__all__ = []
