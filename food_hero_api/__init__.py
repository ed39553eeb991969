"""
Top-level package for the Food Hero API.

The service connects schools that produce food waste with farmers who
collect it.  All functionality lives in the ``app`` subpackage; start
the server with ``uvicorn food_hero_api.app.main:app``.
"""

__all__ = []
